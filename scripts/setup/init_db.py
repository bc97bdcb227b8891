# scripts/setup/init_db.py
"""
Initialize database — creates the occupancy table and its indexes.
Run once before first launch (the backend also does this on startup).
Usage: python scripts/setup/init_db.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from app.database import create_tables, engine
from app.config import settings
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError


def main():
    print("🗄️  Pool Occupancy DB Initialization")
    print("=" * 40)
    print(f"📡 Database: {settings.DATABASE_URL}")

    # Test connection
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")
    except SQLAlchemyError as e:
        print(f"❌ Cannot connect to database: {e}")
        print("\nCheck DATABASE_URL in .env")
        sys.exit(1)

    print("\n📋 Creating tables...")
    create_tables()
    print("✅ Tables created")

    inspector = inspect(engine)
    tables = sorted(inspector.get_table_names())
    print(f"\n📊 Tables in database ({len(tables)} total):")
    for t in tables:
        indexes = ", ".join(ix["name"] for ix in inspector.get_indexes(t))
        print(f"   ✓ {t}" + (f"  [{indexes}]" if indexes else ""))

    print("\n🎉 Database ready! You can now start the backend:")
    print(f"   uvicorn app.main:app --host {settings.BACKEND_IP} --port {settings.BACKEND_PORT}")


if __name__ == "__main__":
    main()
