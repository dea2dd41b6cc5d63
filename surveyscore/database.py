import os
from pathlib import Path
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from dotenv import load_dotenv

# Настройки сервиса оценки берутся из surveyscore/.env (если есть) и окружения
load_dotenv(Path(__file__).with_name(".env"))

DATABASE_URL = os.getenv("DATABASE_URL")
# каталог YAML-анкет для POST /assessments/import
CATALOG_ROOT = Path(os.getenv("ASSESSMENT_CATALOG") or Path(__file__).with_name("assessment_catalog"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

Base = declarative_base()

# Без DATABASE_URL ответы и анкеты хранятся в surveyscore/app.db
if not DATABASE_URL or not DATABASE_URL.strip():
    db_path = Path(__file__).with_name("app.db")
    DATABASE_URL = f"sqlite:///{db_path}"
    engine = create_engine(DATABASE_URL, connect_args={"check_same_thread": False})
else:
    engine = create_engine(DATABASE_URL, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Сессия на один запрос к API; закрывается после ответа."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
