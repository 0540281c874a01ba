import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from database import engine, Base
import config

# --- IMPORT ROUTERS (APIs) ---
from routers import student_debt, payments, group_transfers, salary_slips, reports, enrollments

# --- IMPORT MODELS ---
from models.students import Student
from models.masters import Teacher, Group
from models.enrollments import Enrollment, GroupTransfer
from models.fee_models import Payment, PaymentMonth, InvoiceCounter
from models.salary import SalarySlip
from models.system import AuditLog
from services.errors import LedgerError

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# --- CREATE DATABASE TABLES ---
Base.metadata.create_all(bind=engine)

app = FastAPI(title="Learning Center Tuition Ledger")

# ==========================================
# CORS MIDDLEWARE
# ==========================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==========================================
# LEDGER ERRORS -> JSON
# ==========================================
@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    if exc.status_code >= 409:
        logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# --- REGISTER ROUTERS ---
app.include_router(student_debt.router)
app.include_router(payments.router)
app.include_router(group_transfers.router)
app.include_router(salary_slips.router)
app.include_router(reports.router)
app.include_router(enrollments.router)


@app.get("/health")
def health():
    return {"status": "ok"}
