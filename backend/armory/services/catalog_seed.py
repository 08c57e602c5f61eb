"""Startup seed for the reference catalogs. Safe to run on every boot."""
from sqlalchemy.orm import Session

from armory.core.logging import get_logger
from armory.services.catalog_service import CALIBERS, MANUFACTURERS, WEAPON_TYPES, Catalog

logger = get_logger(__name__)

WEAPON_TYPE_SEED = [
    {"type": "Other", "nickname": "Other", "popularity": 999},
    {"type": "Handgun", "nickname": "Pistol", "popularity": 100},
    {"type": "Semi-Automatic Rifle", "nickname": "AR", "popularity": 90},
    {"type": "Shotgun", "nickname": "Shotgun", "popularity": 85},
    {"type": "Revolver", "nickname": "Revolver", "popularity": 80},
    {"type": "Rifle", "nickname": "Rifle", "popularity": 75},
    {"type": "Carbine", "nickname": "Carbine", "popularity": 60},
    {"type": "Bolt-Action Rifle", "nickname": "Bolt Rifle", "popularity": 55},
    {"type": "Semi-Automatic Shotgun", "nickname": "Semi-Auto Shotgun", "popularity": 50},
    {"type": "Pump-Action Shotgun", "nickname": "Pump Shotgun", "popularity": 45},
    {"type": "Lever-Action Rifle", "nickname": "Lever Rifle", "popularity": 40},
    {"type": "Sniper Rifle", "nickname": "Sniper", "popularity": 35},
    {"type": "Designated Marksman Rifle", "nickname": "DMR", "popularity": 30},
    {"type": "Precision Rifle", "nickname": "Precision Rifle", "popularity": 30},
    {"type": "Submachine Gun", "nickname": "SMG", "popularity": 25},
    {"type": "Battle Rifle", "nickname": "Battle Rifle", "popularity": 25},
    {"type": "Personal Defense Weapon", "nickname": "PDW", "popularity": 20},
    {"type": "Machine Gun", "nickname": "MG", "popularity": 15},
    {"type": "Anti-Materiel Rifle", "nickname": "AMR", "popularity": 10},
]

CALIBER_SEED = [
    {"caliber": "Other", "nickname": "Other", "popularity": 999},
    # Most popular
    {"caliber": "9mm Parabellum", "nickname": "9", "popularity": 100},
    {"caliber": "45 ACP", "nickname": "45", "popularity": 90},
    {"caliber": "22 Long Rifle", "nickname": "22 LR", "popularity": 85},
    {"caliber": "12 Gauge", "nickname": "12", "popularity": 80},
    {"caliber": "5.56×45mm NATO", "nickname": "5.56", "popularity": 75},
    {"caliber": "308 Winchester", "nickname": "308", "popularity": 70},
    {"caliber": "38 Special", "nickname": "38", "popularity": 65},
    {"caliber": "357 Magnum", "nickname": "357", "popularity": 60},
    {"caliber": "40 S&W", "nickname": "40", "popularity": 55},
    {"caliber": "380 ACP", "nickname": "380", "popularity": 50},
    # Handgun
    {"caliber": "22 Magnum", "nickname": "22 Mag", "popularity": 30},
    {"caliber": "25 ACP", "nickname": "25 ACP", "popularity": 20},
    {"caliber": "32 ACP", "nickname": "32 ACP", "popularity": 20},
    {"caliber": "32 S&W", "nickname": "32 S&W", "popularity": 15},
    {"caliber": "9×19mm", "nickname": "9", "popularity": 40},
    {"caliber": "44 Special", "nickname": "44", "popularity": 25},
    {"caliber": "44 Magnum", "nickname": "44 Mag", "popularity": 35},
    {"caliber": "50 AE", "nickname": "50 AE", "popularity": 15},
    # Rifle
    {"caliber": "223 Remington", "nickname": "223", "popularity": 45},
    {"caliber": "22-250 Remington", "nickname": "22-250", "popularity": 20},
    {"caliber": "243 Winchester", "nickname": "243", "popularity": 30},
    {"caliber": "270 Winchester", "nickname": "270", "popularity": 35},
    {"caliber": "30-06 Springfield", "nickname": "30-06", "popularity": 40},
    {"caliber": "300 Winchester Magnum", "nickname": "300 WM", "popularity": 25},
    {"caliber": "6.5 Creedmoor", "nickname": "6.5", "popularity": 45},
    {"caliber": "7.62×39mm", "nickname": "7.62", "popularity": 40},
    {"caliber": "7.62×51mm NATO", "nickname": "7.62 NATO", "popularity": 35},
    {"caliber": "7.62×54mm R", "nickname": "7.62 R", "popularity": 15},
    {"caliber": "300 AAC Blackout", "nickname": "300 BLK", "popularity": 30},
    {"caliber": "6.8 SPC", "nickname": "6.8 SPC", "popularity": 15},
    {"caliber": "6mm Creedmoor", "nickname": "6 Creedmoor", "popularity": 15},
    {"caliber": "338 Lapua Magnum", "nickname": "338 Lapua", "popularity": 15},
    {"caliber": "375 H&H Magnum", "nickname": "375 H&H", "popularity": 10},
    {"caliber": "458 Winchester Magnum", "nickname": "458 WM", "popularity": 10},
    {"caliber": "416 Rigby", "nickname": "416 Rigby", "popularity": 10},
    {"caliber": "500 S&W Magnum", "nickname": "500 S&W", "popularity": 15},
    {"caliber": "338 Federal", "nickname": "338 Fed", "popularity": 10},
    # Shotgun
    {"caliber": "20 Gauge", "nickname": "20", "popularity": 40},
    {"caliber": "28 Gauge", "nickname": "28", "popularity": 15},
    {"caliber": "410 Bore", "nickname": "410", "popularity": 25},
    {"caliber": "10 Gauge", "nickname": "10", "popularity": 15},
    {"caliber": "16 Gauge", "nickname": "16", "popularity": 15},
]

MANUFACTURER_SEED = [
    {"name": "Smith & Wesson", "country": "USA", "nickname": "S&W"},
    {"name": "Colt's Manufacturing Company", "country": "USA", "nickname": "Colt"},
    {"name": "Remington Arms", "country": "USA", "nickname": "Remington"},
    {"name": "Winchester Repeating Arms", "country": "USA", "nickname": "Winchester"},
    {"name": "Sturm, Ruger & Co.", "country": "USA", "nickname": "Ruger"},
    {"name": "Browning", "country": "USA", "nickname": "Browning"},
    {"name": "Taurus", "country": "Brazil/USA", "nickname": "Taurus"},
    {"name": "Kimber Manufacturing", "country": "USA", "nickname": "Kimber"},
    {"name": "Springfield Armory", "country": "USA", "nickname": "Springfield"},
    {"name": "Sig Sauer", "country": "Germany/USA", "nickname": "Sig"},
    {"name": "Heckler & Koch", "country": "Germany", "nickname": "H&K"},
    {"name": "Barrett Firearms Manufacturing", "country": "USA", "nickname": "Barrett"},
    {"name": "Bushmaster Firearms International", "country": "USA", "nickname": "Bushmaster"},
    {"name": "Franklin Armory", "country": "USA", "nickname": "Franklin"},
    {"name": "Accuracy International", "country": "UK", "nickname": "AI"},
    {"name": "Glock", "country": "Austria", "nickname": "Glock"},
    {"name": "Beretta", "country": "Italy", "nickname": "Beretta"},
    {"name": "Česká zbrojovka (CZ)", "country": "Czech Republic", "nickname": "CZ"},
    {"name": "FN Herstal", "country": "Belgium", "nickname": "FN"},
    {"name": "Steyr Mannlicher", "country": "Austria", "nickname": "Steyr"},
    {"name": "Walther", "country": "Germany", "nickname": "Walther"},
    {"name": "IWI (Israel Weapon Industries)", "country": "Israel", "nickname": "IWI"},
    {"name": "Kel-Tec", "country": "USA", "nickname": "Kel-Tec"},
    {"name": "Rossi", "country": "USA/Brazil", "nickname": "Rossi"},
    {"name": "Charter Arms", "country": "USA", "nickname": "Charter"},
    {"name": "Uberti", "country": "Italy/USA", "nickname": "Uberti"},
    {"name": "ArmaLite", "country": "USA", "nickname": "ArmaLite"},
    {"name": "Magnum Research", "country": "USA", "nickname": "Magnum"},
    {"name": "Mauser", "country": "Germany", "nickname": "Mauser"},
    {"name": "Luger", "country": "Germany", "nickname": "Luger"},
    {"name": "Webley", "country": "UK", "nickname": "Webley"},
    {"name": "Enfield", "country": "UK", "nickname": "Enfield"},
    {"name": "Wilson Combat", "country": "USA", "nickname": "Wilson"},
    {"name": "Les Baer", "country": "USA", "nickname": "Baer"},
    {"name": "Nighthawk Custom", "country": "USA", "nickname": "Nighthawk"},
    {"name": "Taran Tactical Innovations", "country": "USA", "nickname": "Taran"},
    {"name": "Ed Brown Products", "country": "USA", "nickname": "Ed Brown"},
    {"name": "CCI (Cascade Cartridge Inc.)", "country": "USA", "nickname": "CCI"},
]


def _seed(db: Session, catalog: Catalog, rows: list[dict]) -> int:
    """Insert missing rows and refresh popularity on existing ones; returns inserts"""
    existing = {
        getattr(entry, catalog.name_field): entry
        for entry in db.query(catalog.model).execution_options(include_deleted=True).all()
    }
    created = 0
    for row in rows:
        entry = existing.get(row[catalog.name_field])
        if entry is None:
            db.add(catalog.model(**row))
            created += 1
        elif "popularity" in row:
            entry.popularity = row["popularity"]
    return created


def seed_catalogs(db: Session) -> None:
    counts = {
        WEAPON_TYPES.slug: _seed(db, WEAPON_TYPES, WEAPON_TYPE_SEED),
        CALIBERS.slug: _seed(db, CALIBERS, CALIBER_SEED),
        MANUFACTURERS.slug: _seed(db, MANUFACTURERS, MANUFACTURER_SEED),
    }
    db.commit()
    logger.info("Catalog seed complete", extra={"extra_data": counts})
