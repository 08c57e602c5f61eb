from sqlalchemy import Column, Integer, String, DateTime, func

from armory.core.database import Base, SoftDeleteMixin


class Manufacturer(SoftDeleteMixin, Base):
    __tablename__ = "manufacturers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), unique=True, nullable=False)
    nickname = Column(String(100), nullable=True)
    country = Column(String(100), nullable=True)
    popularity = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    @property
    def display_name(self) -> str:
        return self.name
