from shortlinks.dao.base.blob_base_dao import BlobBaseDAO


__all__ = ['BlobBaseDAO']
