"""
Request Schemas

Pydantic models for API request bodies.
"""

from typing import Optional

from pydantic import BaseModel, Field

from followup.models import NoteDraft


class ShareCheckRequest(BaseModel):
    """Candidates picked for a profile share."""

    candidate_ids: list[str] = Field(
        default_factory=list,
        description="Customers about to be shared"
    )
    exclude_note_id: Optional[str] = Field(
        None,
        description="Note being edited, left out of the history"
    )


class SubmitNoteRequest(NoteDraft):
    """A note to submit; the customer comes from the URL."""

    customer_id: str = Field(default="", description="Ignored - taken from the path")
    override_duplicate_share: bool = Field(
        default=False,
        description="Share again with customers who already received this profile"
    )

    def to_draft(self, customer_id: str) -> NoteDraft:
        data = self.model_dump(exclude={"override_duplicate_share"})
        data["customer_id"] = customer_id
        return NoteDraft(**data)

    model_config = {
        "json_schema_extra": {
            "example": {
                "stage": "Profile Status",
                "note": "Family asked for more profiles",
                "status": "profiles_shared",
                "status_note": "Shared two profiles over WhatsApp",
                "reminder_date": "2026-10-21",
                "reminder_note": "Ask for feedback",
                "associated_customer_ids": ["CUST204", "CUST318"],
                "override_duplicate_share": False,
            }
        }
    }
