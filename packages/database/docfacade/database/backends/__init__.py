from docfacade.database.backends.motor_store_handle import MotorStoreHandle
from docfacade.database.backends.store_handle import DocumentCursor, StoreHandle

__all__ = ["DocumentCursor", "MotorStoreHandle", "StoreHandle"]
