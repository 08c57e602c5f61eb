from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship

from armory.core.database import Base, SoftDeleteMixin


class Gun(SoftDeleteMixin, Base):
    __tablename__ = "guns"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    acquired = Column(Date, nullable=True)
    description = Column(Text, nullable=True)
    weapon_type_id = Column(Integer, ForeignKey("weapon_types.id"), nullable=False)
    caliber_id = Column(Integer, ForeignKey("calibers.id"), nullable=False)
    manufacturer_id = Column(Integer, ForeignKey("manufacturers.id"), nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    owner = relationship("User", back_populates="guns")
    weapon_type = relationship("WeaponType")
    caliber = relationship("Caliber")
    manufacturer = relationship("Manufacturer")
