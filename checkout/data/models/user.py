from sqlalchemy import Column, Integer, String
from checkout.data.database import Base

class UserModel(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String, nullable=False)
