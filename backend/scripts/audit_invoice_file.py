"""
Script to audit one invoice export (CSV/XLSX) against a preset rate card.

Usage:
    python scripts/audit_invoice_file.py <path-to-file> <provider-name> [--save]
"""
import argparse
import json
import os
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from courier_audit.config.mapping_loader import get_contract_preset
from courier_audit.db.database import Base, SessionLocal, engine, settings
from courier_audit.schemas.contract import ContractRules
from courier_audit.services.audit_history import AuditHistory
from courier_audit.services.audit_pipeline import run_audit_pipeline
from courier_audit.services.file_parser import infer_file_type, read_grid
from courier_audit.services.storage import SqlStorage
from courier_audit.services.weight_regression import WeightDataStore


def audit_file(file_path: str, provider_name: str, save: bool = False):
    preset = get_contract_preset(provider_name)
    if not preset:
        print(f"No preset rate card for provider '{provider_name}'")
        return None

    grid = read_grid(file_path, infer_file_type(file_path))

    db = SessionLocal()
    try:
        history = weight_store = None
        if save:
            Base.metadata.create_all(bind=engine)
            storage = SqlStorage(db)
            history = AuditHistory(storage, max_records=settings.history_max_records)
            weight_store = WeightDataStore(storage, max_records=settings.weight_max_records)

        result = run_audit_pipeline(
            contract=ContractRules(**preset),
            provider_name=preset["provider_name"],
            file_name=Path(file_path).name,
            grid=grid,
            history=history,
            weight_store=weight_store,
        )
    finally:
        db.close()

    prepared = result.prepared
    if prepared.needs_manual_review:
        print(f"Warning: low-confidence columns {prepared.detection.low_confidence_fields}")
    print(f"Header row: {prepared.header_row}")
    print(f"Rows audited: {result.analysis.total_rows} of {prepared.raw_row_count}")
    print(f"Total billed: {result.analysis.total_billed:,.2f}")
    print(f"Flagged: {result.analysis.flagged_count}")
    print(f"Total overcharge: {result.analysis.total_overcharge:,.2f}")
    print(json.dumps(result.record.overcharge_by_type.model_dump(), indent=2))
    return result


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Audit a courier invoice export")
    parser.add_argument("file_path")
    parser.add_argument("provider_name")
    parser.add_argument("--save", action="store_true", help="append to audit history and weight data")
    args = parser.parse_args()
    audit_file(args.file_path, args.provider_name, save=args.save)
