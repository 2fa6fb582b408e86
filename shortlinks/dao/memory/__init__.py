from shortlinks.dao.memory.blob_memory_dao import BlobMemoryDAO


__all__ = ['BlobMemoryDAO']
