import sys
import os
import traceback

# Add project root to path
sys.path.append(os.getcwd())

print("Starting model verification...")

try:
    from app.core import config
    print("Config imported.")

    from sqlalchemy.orm import configure_mappers

    # Import Base last (and all models)
    from app.db.base import Base
    print(f"Base imported. {len(Base.metadata.tables)} tables registered.")

    print("Checking ORM mappings...")
    configure_mappers()
    print("SUCCESS: ORM mappings are valid.")

    # DDL must compile for the production dialect
    from sqlalchemy.dialects import postgresql
    from sqlalchemy.schema import CreateTable

    dialect = postgresql.dialect()
    for table in Base.metadata.sorted_tables:
        CreateTable(table).compile(dialect=dialect)
    print("SUCCESS: PostgreSQL DDL compiles for every table.")

except Exception:
    print("FAILURE: Model verification failed.")
    traceback.print_exc()
    sys.exit(1)
