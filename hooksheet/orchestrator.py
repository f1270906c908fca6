# hooksheet/orchestrator.py
from typing import Any, Dict

# Import modules (not bare functions) so monkeypatching in tests works correctly
import hooksheet.processors.transformer as _transformer
from hooksheet import monitoring
from hooksheet.errors import InputError, TransformationError
from hooksheet.schemas import ProcessedRow
from hooksheet.store import RecordStore

STATUS_SUCCESS = "success"
STATUS_INPUT_ERROR = "input_error"
STATUS_PROCESSING_ERROR = "processing_error"

MSG_SUCCESS = "Webhook processed and added to the sheet."
MSG_INPUT_ERROR = "The webhook payload is not valid JSON. Check the syntax and try again."
MSG_PROCESSING_ERROR = "The transformation failed. Nothing was added to the sheet; you can resubmit."


class WebhookOrchestrator:
    def __init__(self, store: RecordStore):
        self.store = store

    def process(self, raw_payload: str, instructions: str) -> ProcessedRow:
        """
        Full synchronous flow:
        1. Payload check (InputError before any oracle call)
        2. Oracle transformation + flat-record validation
        3. Append the new row to the store

        The store is only touched after step 2 succeeded, so any raised
        TransformationError leaves it exactly as it was.
        """
        record = _transformer.transform(raw_payload, instructions)
        row = ProcessedRow(original_payload=raw_payload, data=record)
        stored = self.store.append(row)
        monitoring.set_store_rows(len(self.store))
        return stored

    def submit(self, raw_payload: str, instructions: str) -> Dict[str, Any]:
        """
        Tri-state wrapper around process():
          {"status": "success", "row": {...}, "message": ...}
          {"status": "input_error", "error_code": ..., "message": ..., "details": {...}}
          {"status": "processing_error", "error_code": ..., "message": ..., "details": {...}}
        """
        try:
            row = self.process(raw_payload, instructions)
        except InputError as e:
            monitoring.inc_submission(STATUS_INPUT_ERROR)
            monitoring.logger.info("Rejected webhook payload", extra={"error_code": e.code, "reason": e.message})
            return {
                "status": STATUS_INPUT_ERROR,
                "error_code": e.code,
                "message": MSG_INPUT_ERROR,
                "details": {"reason": e.message, **e.details},
            }
        except TransformationError as e:
            monitoring.inc_submission(STATUS_PROCESSING_ERROR)
            monitoring.logger.warning("Webhook transformation failed", extra={"error_code": e.code, "reason": e.message})
            return {
                "status": STATUS_PROCESSING_ERROR,
                "error_code": e.code,
                "message": MSG_PROCESSING_ERROR,
                "details": {"reason": e.message, **e.details},
            }

        monitoring.inc_submission(STATUS_SUCCESS)
        monitoring.logger.info("Webhook row appended", extra={"row_id": row.id, "columns": len(row.data)})
        return {
            "status": STATUS_SUCCESS,
            "row": row.model_dump(by_alias=True),
            "message": MSG_SUCCESS,
        }

    def clear(self) -> int:
        removed = self.store.clear()
        monitoring.set_store_rows(0)
        monitoring.logger.info("Record store cleared", extra={"rows_removed": removed})
        return removed
