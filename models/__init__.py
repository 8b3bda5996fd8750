from models.base_model import Base, BaseModel
from models.refresh_token import RefreshToken, TokenStatus
from models.user import User
from models.db_storage import DBStorage

__all__ = ["Base", "BaseModel", "DBStorage", "RefreshToken", "TokenStatus", "User"]
