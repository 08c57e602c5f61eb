# Import every model so Base.metadata is complete (Alembic autogenerate, create_all)
from armory.models.user import User
from armory.models.payment import Payment
from armory.models.gun import Gun
from armory.models.weapon_type import WeaponType
from armory.models.caliber import Caliber
from armory.models.manufacturer import Manufacturer

__all__ = [
    "User",
    "Payment",
    "Gun",
    "WeaponType",
    "Caliber",
    "Manufacturer",
]
