from models.base_model import Base, BaseModel
from sqlalchemy import Column, String, JSON


class User(BaseModel, Base):
    __tablename__ = "users"
    f_name = Column(String(255), nullable=True)
    l_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    roles = Column(JSON, nullable=False, default=lambda: ["User"])

    @property
    def user_name(self) -> str:
        # accounts are registered with their email as the user name
        return self.email

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")
