import logging
from fastapi import FastAPI
from surveyscore.database import Base, engine, LOG_LEVEL
from surveyscore import models  # noqa: F401  регистрирует таблицы
from surveyscore.routers import assessments as assessments_router, responses as responses_router

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = FastAPI(title="Survey Scoring")
Base.metadata.create_all(bind=engine)

app.include_router(assessments_router.router)
app.include_router(responses_router.router)


@app.get("/health")
def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("surveyscore.main:app", host="127.0.0.1", port=8000, reload=True)
