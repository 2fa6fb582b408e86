# Log event and error codes
INVALID_JSON_BODY = 'INVALID_JSON_BODY'
INVALID_REQUEST_FIELD = 'INVALID_REQUEST_FIELD'
VALIDATION_FAILED = 'VALIDATION_FAILED'
SHORT_LINK_CREATED = 'SHORT_LINK_CREATED'
