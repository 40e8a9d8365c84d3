"""
Seed data: the global HVAC pricebook and an optional demo dataset.
Both functions are idempotent and safe to call on every startup.
"""
from decimal import Decimal

import structlog
from slugify import slugify
from sqlalchemy.orm import Session

from ..auth.security import get_password_hash
from ..models.models import Company, Customer, GlobalPricebook, Technician, User, UserRole


log = structlog.get_logger(__name__)

PRICEBOOK_FIELDS = (
    "sku",
    "category",
    "task_name",
    "tech_notes",
    "customer_description",
    "standard_price",
    "membership_price",
    "after_hours_price",
    "est_hours",
    "equipment_type",
    "parts_kit",
    "warranty_code",
)

# sku, category, task, tech notes, customer description, standard, membership, after hours, hours, equipment, parts kit, warranty
GLOBAL_PRICEBOOK = [
    ("AC-TU-01", "Maintenance > Tune-Up", "Full A/C Tune‑Up (1 System)", "Check ΔT, clean outdoor coil, flush drain, tighten lugs", "Seasonal tune‑up & 21‑point inspection", "185.00", "135.00", "250.00", "1.0", "Air Conditioner", "", ""),
    ("HT-TU-01", "Maintenance > Tune-Up", "Gas Furnace Tune‑Up", "Clean burners, check flame sensor, inspect HX", "Annual furnace tune‑up & safety check", "165.00", "120.00", "225.00", "1.0", "Furnace", "", ""),
    ("HP-TU-01", "Maintenance > Tune-Up", "Heat Pump Tune‑Up", "Defrost board test, coil wash, refrigerant check", "Comprehensive heat‑pump tune‑up", "195.00", "145.00", "260.00", "1.2", "Heat Pump", "", ""),
    ("IAQ-FLT-01", "Maintenance > Filter", "Replace Standard 1\" Filter (pair)", "Verify airflow direction", "Change disposable 1\" filters", "35.00", "25.00", "50.00", "0.2", "Air Conditioner", "1\" Filter (2)", ""),
    ("IAQ-FLT-02", "Maintenance > Filter", "Replace 4\" Media Filter", "Check static pressure post-change", "Media filter replacement", "90.00", "70.00", "120.00", "0.3", "Air Conditioner", "4\" Media Filter", ""),
    ("MAI-COIL-CL", "Maintenance > Cleaning", "Outdoor Coil Deep‑Clean", "Chemical foaming coil cleaner, low‑pressure rinse", "Deep clean outdoor condenser coil", "185.00", "145.00", "245.00", "1.0", "Air Conditioner", "Foam cleaner", ""),
    ("MAI-BLOW-CL", "Maintenance > Cleaning", "Blower Wheel Cleaning", "Remove wheel, degrease, balance check", "Blower wheel cleaning service", "225.00", "175.00", "295.00", "1.3", "Air Handler", "", ""),
    ("MAI-DUC-CL", "Maintenance > Cleaning", "Duct Sanitizing (up to 10 vents)", "Fog EPA-listed sanitizer", "Whole‑home duct sanitizing treatment", "350.00", "280.00", "450.00", "1.5", "Ductwork", "Sanitizer", ""),
    ("MAI-DRAIN-CLR", "Maintenance > Cleaning", "Condensate Drain Flush", "Vacuum & flush with condensate tablets", "Clear & treat AC drain line", "120.00", "90.00", "160.00", "0.6", "Air Conditioner", "Drain tabs", ""),
    ("MAI-INSP-01", "Maintenance > Inspection", "Comprehensive System Inspection", "Document 30‑point checklist in app", "Full HVAC inspection report", "140.00", "105.00", "190.00", "1.0", "HVAC System", "", ""),
    ("DIAG-AC", "Diagnostic", "A/C System Diagnostic (No Cool)", "Pressure check, electrical diagnostics", "Diagnostic visit – air conditioner not cooling", "99.00", "75.00", "149.00", "0.8", "Air Conditioner", "", ""),
    ("DIAG-FUR", "Diagnostic", "Furnace Diagnostic (No Heat)", "Ignition sequence test, gas pressure", "Diagnostic visit – furnace not heating", "99.00", "75.00", "149.00", "0.8", "Furnace", "", ""),
    ("DIAG-HP", "Diagnostic", "Heat Pump Diagnostic", "Check reversing valve, defrost cycle", "Diagnostic visit – heat pump issue", "109.00", "85.00", "159.00", "0.9", "Heat Pump", "", ""),
    ("DIAG-IAQ", "Diagnostic", "Indoor Air Quality Assessment", "CO, humidity, particulate reading", "Whole‑home IAQ evaluation", "80.00", "60.00", "120.00", "0.7", "HVAC System", "", ""),
    ("DIAG-ELC", "Diagnostic", "Electrical Fault Diagnostic", "Megohm test motors, inspect wiring", "Electrical troubleshooting visit", "120.00", "95.00", "170.00", "1.0", "HVAC System", "", ""),
    ("AC-CAP-45", "Repair > Electrical", "Replace Capacitor 45/5 µF", "Verify microfarads ±6%", "Capacitor replacement", "220.00", "175.00", "310.00", "0.6", "Air Conditioner", "45/5 Cap", ""),
    ("AC-CNT-40", "Repair > Electrical", "Replace Contactor 40 A", "Check coil voltage and line lugs", "Contactor replacement", "240.00", "190.00", "330.00", "0.7", "Air Conditioner", "40A Contactor", ""),
    ("AC-MTR-COND", "Repair > Mechanical", "Condenser Fan‑Motor Replacement", "Replace fan blades if bent", "Condenser fan motor replacement", "540.00", "450.00", "690.00", "1.5", "Air Conditioner", "Motor, capacitor", ""),
    ("AC-COMP-RPL", "Repair > Mechanical", "Compressor Replacement (3‑ton, R‑410A)", "Weigh in R‑410A charge to spec", "Air‑conditioner compressor replacement", "2450.00", "2150.00", "3150.00", "4.0", "Air Conditioner", "Compressor, drier", "COMP-10YR"),
    ("AC-COIL-EVAP", "Repair > Mechanical", "Evaporator Coil Replacement", "Install TXV, pressure test 300 psi", "Evaporator coil replacement", "1550.00", "1350.00", "2050.00", "3.0", "Air Conditioner", "Coil, TXV", ""),
    ("FUR-IGN", "Repair > Electrical", "Hot‑Surface Igniter Replacement", "Verify 120 V to igniter", "Igniter replacement", "285.00", "230.00", "390.00", "0.8", "Furnace", "HSI", ""),
    ("FUR-HX", "Repair > Mechanical", "Heat Exchanger Replacement (Gas Furnace)", "Combustion test post‑install", "Heat exchanger replacement", "1350.00", "1150.00", "1850.00", "3.5", "Furnace", "HX kit", "HX-20YR"),
    ("HP-REV-VAL", "Repair > Refrigerant", "Reversing Valve Replacement", "Brazing with nitrogen purge", "Heat‑pump reversing valve replacement", "1600.00", "1400.00", "2100.00", "3.5", "Heat Pump", "Rev valve, drier", ""),
    ("AC-TXV-RPL", "Repair > Refrigerant", "TXV Replacement", "Adjust superheat post‑install", "Thermostatic expansion valve replacement", "780.00", "640.00", "1010.00", "2.0", "Air Conditioner", "TXV, drier", ""),
    ("IAQ-UV-01", "Install > IAQ", "Install 24 V UV Light", "Wire to R & C, mount in supply plenum", "Install germicidal UV light", "385.00", "335.00", "485.00", "1.2", "Air Handler", "UV kit", ""),
    ("IAQ-STAT-WIFI", "Install > Controls", "Install Wi‑Fi Thermostat", "Connect Wi‑Fi, educate homeowner", "Wi‑Fi thermostat install & setup", "325.00", "275.00", "425.00", "1.0", "Controls", "Wi‑Fi thermostat", ""),
]

DEMO_PASSWORD = "demo123"

DEMO_COMPANIES = [
    {
        "name": "Quick Fix HVAC",
        "address": "123 Main St",
        "city": "Austin",
        "state": "TX",
        "zip_code": "78701",
        "phone": "(512) 555-0100",
        "email": "contact@quickfixhvac.com",
    },
    {
        "name": "City Climate Control",
        "address": "456 Oak Avenue",
        "city": "Dallas",
        "state": "TX",
        "zip_code": "75201",
        "phone": "(214) 555-0200",
        "email": "info@cityclimate.com",
    },
    {
        "name": "Metro HVAC Services",
        "address": "789 Pine Street",
        "city": "Houston",
        "state": "TX",
        "zip_code": "77001",
        "phone": "(713) 555-0300",
        "email": "service@metrohvac.com",
    },
]

DEMO_CUSTOMER_ADDRESSES = [
    ("100 Congress Ave", "Austin", "TX", "78701"),
    ("200 W 6th St", "Austin", "TX", "78701"),
    ("300 E 7th St", "Austin", "TX", "78702"),
    ("400 S Lamar Blvd", "Austin", "TX", "78704"),
    ("500 Barton Springs Rd", "Austin", "TX", "78704"),
]


def _pricebook_values(row: tuple) -> dict:
    values = dict(zip(PRICEBOOK_FIELDS, row))
    for key in ("standard_price", "membership_price", "after_hours_price", "est_hours"):
        values[key] = Decimal(values[key]) if values[key] else None
    for key in ("parts_kit", "warranty_code"):
        values[key] = values[key] or None
    return values


def populate_global_pricebook(db: Session) -> int:
    """Upsert the catalog by sku. Returns the number of new rows."""
    existing = {p.sku: p for p in db.query(GlobalPricebook).all()}
    created = 0
    for row in GLOBAL_PRICEBOOK:
        values = _pricebook_values(row)
        current = existing.get(values["sku"])
        if current is None:
            db.add(GlobalPricebook(**values))
            created += 1
        else:
            for key, value in values.items():
                setattr(current, key, value)
    db.commit()
    log.info("global_pricebook_populated", created=created, total=len(GLOBAL_PRICEBOOK))
    return created


def _ensure_user(db: Session, username: str, name: str, email: str, role: str, company_id: int, password_hash: str) -> User:
    user = db.query(User).filter(User.username == username).first()
    if user is None:
        user = User(username=username, password_hash=password_hash, name=name, email=email, role=role, is_active=True)
        db.add(user)
        db.flush()
    has_membership = (
        db.query(UserRole.id)
        .filter(UserRole.user_id == user.id, UserRole.company_id == company_id)
        .first()
    )
    if has_membership is None:
        db.add(UserRole(user_id=user.id, company_id=company_id, role=role))
    return user


def seed_demo_data(db: Session) -> None:
    """Three demo companies, each with an owner (owner1..3 / demo123), 1..3 technicians and 5 customers."""
    password_hash = get_password_hash(DEMO_PASSWORD)
    for index, spec in enumerate(DEMO_COMPANIES, start=1):
        slug = slugify(spec["name"])
        company = db.query(Company).filter(Company.slug == slug).first()
        if company is None:
            company = Company(slug=slug, settings={"timezone": "America/Chicago"}, **spec)
            db.add(company)
            db.flush()
        domain = spec["email"].split("@", 1)[1]
        area_code = spec["phone"][1:4]

        _ensure_user(db, f"owner{index}", f"{company.name} Owner", f"owner@{domain}", "owner", company.id, password_hash)

        for i in range(1, index + 1):
            tech_user = _ensure_user(
                db, f"tech{company.id}_{i}", f"Technician {i}", f"tech{i}@{domain}", "technician", company.id, password_hash
            )
            if db.query(Technician.id).filter(Technician.user_id == tech_user.id).first() is None:
                db.add(
                    Technician(
                        company_id=company.id,
                        user_id=tech_user.id,
                        name=f"Technician {i}",
                        email=f"tech{i}@{domain}",
                        phone=f"({area_code}) 555-{i:04d}",
                        specialties=["AC Repair", "Installation"] if i == 1 else ["Heating", "Maintenance"],
                        status="active",
                        hourly_rate=Decimal("45.00"),
                    )
                )

        for i, (address, city, state, zip_code) in enumerate(DEMO_CUSTOMER_ADDRESSES, start=1):
            name = f"Customer {company.id}-{i}"
            exists = (
                db.query(Customer.id)
                .filter(Customer.company_id == company.id, Customer.name == name)
                .first()
            )
            if exists is not None:
                continue
            db.add(
                Customer(
                    company_id=company.id,
                    name=name,
                    email=f"customer{i}@example.com",
                    phone=f"({area_code}) 555-{999 + i:04d}",
                    address=address,
                    city=city,
                    state=state,
                    zip_code=zip_code,
                    notes="Preferred customer - priority service" if i == 1 else None,
                )
            )
        db.commit()
        log.info("demo_company_seeded", company=company.name, slug=slug, technicians=index)
