# Log event and error codes
INVALID_STATUS_FILTER = 'INVALID_STATUS_FILTER'

# Accepted values of the 'status' query string parameter
STATUS_FILTERS = ('all', 'active', 'expired')
