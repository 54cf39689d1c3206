"""
Main FastAPI application entry point.
"""
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from courier_audit.api import audits, columns, contracts, history, weights
from courier_audit.db.database import engine, Base
from courier_audit import models  # noqa: F401  registers tables

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# Create database tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Courier Invoice Audit",
    description="Courier invoice auditing against negotiated rate cards",
    version="1.0.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],  # dashboard dev servers
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(audits.router, prefix="/api/audits", tags=["audits"])
app.include_router(columns.router, prefix="/api/columns", tags=["columns"])
app.include_router(contracts.router, prefix="/api/contracts", tags=["contracts"])
app.include_router(history.router, prefix="/api/history", tags=["history"])
app.include_router(weights.router, prefix="/api/weights", tags=["weights"])


@app.get("/")
async def root():
    return {"message": "Courier Invoice Audit API"}


@app.get("/health")
async def health():
    return {"status": "healthy"}
