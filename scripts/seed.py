"""
GoldBod Assay Office - Database Seeder
========================================
Seeds staff users, exporters, daily prices and one valued job card.

Usage:
    python scripts/seed.py                         # Full seed
    python scripts/seed.py --reset                 # Drop all data and reseed
    python scripts/seed.py --exporters file.xlsx   # Also import exporters from Excel

Exporter workbook format (first sheet, header on row 1):
    A = name, B = code, C = type (small-scale / large-scale / gold / other),
    D = authorized signatory, E = license number
"""

import sys
import os
from datetime import datetime, timezone

import openpyxl

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.database import SessionLocal, Base, engine
from common.security import hash_password
from modules.user.models import User, UserRole
from modules.admin.models import DocumentSequence, RequestLog  # noqa: F401
from modules.exporter.models import Exporter, ExporterType
from modules.job_card.models import JobCard, CardType
from modules.invoice.models import Invoice, Fee  # noqa: F401
from modules.pricing.models import DailyPrice, PriceType  # noqa: F401
from modules.pricing.service import record_price
from modules.job_card.service import job_card_service
from modules.invoice.service import invoice_service

DEFAULT_PASSWORD = "ChangeMe!2025"

STAFF = [
    ("superadmin@goldbod.gov.gh", "System Administrator", UserRole.SUPERADMIN),
    ("admin@goldbod.gov.gh", "Office Administrator", UserRole.ADMIN),
    ("finance@goldbod.gov.gh", "Finance Officer", UserRole.FINANCE),
    ("executive@goldbod.gov.gh", "Executive Director", UserRole.EXECUTIVE),
    ("ss.assayer@goldbod.gov.gh", "Small Scale Assayer", UserRole.SMALL_SCALE_ASSAYER),
    ("ls.assayer@goldbod.gov.gh", "Large Scale Assayer", UserRole.LARGE_SCALE_ASSAYER),
]

EXPORTERS = [
    {"name": "Ashanti Gold Traders", "code": "AGT", "exporter_type": ExporterType.SMALL_SCALE.value,
     "authorized_signatory": "K. Mensah", "license_number": "SSM-0142"},
    {"name": "Western Bullion Ltd", "code": "WBL", "exporter_type": ExporterType.LARGE_SCALE.value,
     "authorized_signatory": "A. Owusu", "license_number": "LSM-0031"},
    {"name": "Volta Precious Metals", "code": "VPM", "exporter_type": ExporterType.GOLD.value,
     "authorized_signatory": "E. Boateng", "license_number": "GEX-0097"},
]


def ensure_tables():
    """Create all tables if they don't exist (safe to call multiple times)."""
    print("[0/4] Ensuring all tables exist...")
    Base.metadata.create_all(bind=engine)
    print("  + All tables OK\n")


def read_exporters_xlsx(path: str) -> list:
    """Exporter rows from the first sheet of a workbook (header row skipped)."""
    wb = openpyxl.load_workbook(path, data_only=True, read_only=True)
    try:
        ws = wb.worksheets[0]
        rows = []
        for row in ws.iter_rows(min_row=2, max_col=5, values_only=True):
            name, code, exporter_type, signatory, license_number = (list(row) + [None] * 5)[:5]
            if not name or not code:
                continue
            exporter_type = str(exporter_type or "").strip().lower()
            if exporter_type not in {t.value for t in ExporterType}:
                exporter_type = ExporterType.OTHER.value
            rows.append({
                "name": str(name).strip(),
                "code": str(code).strip().upper(),
                "exporter_type": exporter_type,
                "authorized_signatory": signatory,
                "license_number": license_number,
            })
        return rows
    finally:
        wb.close()


def seed(exporters_xlsx: str = None):
    ensure_tables()
    db = SessionLocal()
    try:
        # --- 1. Staff users ---
        print("[1/4] Staff users...")
        for email, full_name, role in STAFF:
            if db.query(User).filter(User.email == email).first():
                print(f"  = {email} exists")
                continue
            db.add(User(
                email=email, full_name=full_name, role=role.value,
                password_hash=hash_password(DEFAULT_PASSWORD), is_active=True,
            ))
            print(f"  + {email} ({role.value})")
        db.flush()

        # --- 2. Exporters ---
        print("[2/4] Exporters...")
        exporter_rows = list(EXPORTERS)
        if exporters_xlsx:
            imported = read_exporters_xlsx(exporters_xlsx)
            print(f"  Loaded {len(imported)} exporters from {exporters_xlsx}")
            exporter_rows.extend(imported)
        for data in exporter_rows:
            if db.query(Exporter).filter(Exporter.code == data["code"]).first():
                continue
            db.add(Exporter(**data))
            print(f"  + {data['code']}: {data['name']}")
        db.flush()

        # --- 3. Daily prices ---
        print("[3/4] Daily prices...")
        record_price(db, PriceType.COMMODITY.value, 2350.0, source="seed", updated_by="system:seed")
        record_price(db, PriceType.SILVER.value, 28.5, source="seed", updated_by="system:seed")
        record_price(db, PriceType.EXCHANGE.value, 15.2, source="seed", updated_by="system:seed")
        print("  Gold 2,350.00 USD/oz, Silver 28.50 USD/oz, 1 USD = 15.20 GHS")

        # --- 4. Sample valued job card ---
        print("[4/4] Sample job card...")
        if db.query(JobCard).filter(JobCard.reference_number == "SEED-0001").first():
            print("  = SEED-0001 exists")
        else:
            exporter = db.query(Exporter).filter(Exporter.code == "WBL").first()
            job_card = job_card_service.create(db, CardType.LARGE_SCALE.value, {
                "reference_number": "SEED-0001",
                "received_date": datetime.now(timezone.utc),
                "exporter_id": exporter.id,
                "unit_of_measure": "g",
                "destination_country": "Switzerland",
                "number_of_boxes": 1,
            })
            job_card_service.create_assay(db, job_card, {
                "method": "X_RAY",
                "signatory": "Seed Assayer",
                "number_of_bars": 2,
                "measurements": [
                    {"bar_number": "B-01", "gross_weight": 1000.0, "gold_assay": 92.5, "silver_assay": 6.0},
                    {"bar_number": "B-02", "gross_weight": 850.0, "gold_assay": 90.1, "silver_assay": 7.4},
                ],
            })
            invoice = invoice_service.create_for_job_card(db, job_card)
            print(f"  + {job_card.human_readable_id}: USD {job_card.total_value_usd:,.2f}, "
                  f"invoice {invoice.invoice_number} GHS {invoice.grand_total:,.2f}")

        db.commit()
        print("\nSeed complete.")
        print(f"\n--- Staff logins (password: {DEFAULT_PASSWORD}) ---")
        for email, _, role in STAFF:
            print(f"  {email:32} {role.value}")

    except Exception as e:
        db.rollback()
        print(f"\nSeed failed: {e}")
        raise
    finally:
        db.close()


def reset_and_seed(exporters_xlsx: str = None):
    """Drop all tables and recreate + seed."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    print("All tables recreated")
    seed(exporters_xlsx)


if __name__ == "__main__":
    xlsx = None
    if "--exporters" in sys.argv:
        idx = sys.argv.index("--exporters")
        if idx + 1 >= len(sys.argv):
            print("Usage: python scripts/seed.py --exporters file.xlsx")
            sys.exit(1)
        xlsx = sys.argv[idx + 1]

    if "--reset" in sys.argv:
        confirm = input("This will DELETE ALL DATA. Type 'yes' to confirm: ")
        if confirm.strip().lower() == "yes":
            reset_and_seed(xlsx)
        else:
            print("Aborted.")
    else:
        seed(xlsx)
