from sqlalchemy.orm import declarative_base

# Shared Base for ORM models
Base = declarative_base()
