from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from schoolfees.api.v1.fee_structures.router import router as fee_catalog_router
from schoolfees.api.v1.fees.router import router as fees_router
from schoolfees.api.v1.scholarships.router import router as scholarships_router
from schoolfees.api.v1.students.router import router as students_router
from schoolfees.core.logging import configure_logging


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="School Fees Backend")

    # CORS: allow frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(fee_catalog_router)
    app.include_router(scholarships_router)
    app.include_router(students_router)
    app.include_router(fees_router)

    return app


app = create_app()
