# portal/services/milestones.py
"""
Milestone Service

Admin-managed onboarding milestones per client, kept in ``display_order``.
Suggestions come from the fast model and can be inserted in one batch.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging

from pydantic import ValidationError
from sqlalchemy import func
from sqlalchemy.orm import Session

from portal.database import utcnow
from portal.errors import GenerationFailed, InvalidArgument, NotFoundError
from portal.models.activity import ActivityType
from portal.models.milestone import Milestone
from portal.schemas.milestone import MilestoneSuggestion
from portal.services.activity import record_activity
from portal.services.generation import GenerationInvoker
from portal.services.profiles import ProfileStore
from portal.services.prompts import render_prompt

logger = logging.getLogger(__name__)

SUGGEST_SYSTEM_PROMPT = (
    "You are an onboarding specialist who creates milestone-based progress tracking "
    "for marketing agency clients. Return only valid JSON."
)
SUGGEST_SCHEMA_HINT = """Return ONLY a JSON object with a "milestones" array of objects with this structure:
{
  "milestones": [
    {
      "title": "Complete Brand Asset Upload",
      "description": "Upload logo, brand colors, and style guide",
      "estimatedDays": 3
    }
  ]
}"""
SUGGEST_TEMPERATURE = 0.7
SUGGEST_MAX_TOKENS = 800
DEFAULT_ESTIMATED_DAYS = 7

# Fields an update may touch
UPDATABLE_FIELDS = ("title", "description", "due_date", "completed")


class MilestoneService:
    def __init__(self, db: Session, generator: Optional[GenerationInvoker] = None):
        self.db = db
        self.generator = generator
        self.profiles = ProfileStore(db)

    def list(self, client_id: UUID) -> List[Milestone]:
        return self.db.query(Milestone)\
                      .filter(Milestone.client_id == client_id)\
                      .order_by(Milestone.display_order.asc())\
                      .all()

    def _next_display_order(self, client_id: UUID) -> int:
        current = self.db.query(func.max(Milestone.display_order))\
                         .filter(Milestone.client_id == client_id)\
                         .scalar()
        return (current or 0) + 1

    def _add(
        self,
        client_id: UUID,
        title: str,
        description: Optional[str],
        due_date: Optional[datetime],
        ai_suggested: bool,
        display_order: int
    ) -> Milestone:
        if not title or not title.strip():
            raise InvalidArgument("Milestone title is required")

        milestone = Milestone(
            client_id=client_id,
            title=title.strip(),
            description=description,
            due_date=due_date,
            ai_suggested=ai_suggested,
            display_order=display_order,
        )
        self.db.add(milestone)
        return milestone

    def create(
        self,
        client_id: UUID,
        title: str,
        description: Optional[str] = None,
        due_date: Optional[datetime] = None,
        ai_suggested: bool = False
    ) -> Milestone:
        """
        Append a milestone after the client's last one.

        Raises:
            NotFoundError: Unknown client
            InvalidArgument: Blank title
        """
        self.profiles.require(client_id)
        milestone = self._add(
            client_id, title, description, due_date, ai_suggested,
            self._next_display_order(client_id),
        )
        record_activity(
            self.db, client_id, ActivityType.MILESTONE_CREATED,
            f"Milestone added: {milestone.title}",
            {"ai_suggested": ai_suggested},
        )
        self.db.commit()
        self.db.refresh(milestone)

        logger.info(f"✅ Milestone '{milestone.title}' created for client {client_id} (order {milestone.display_order})")
        return milestone

    def get(self, milestone_id: UUID) -> Milestone:
        """
        Raises:
            NotFoundError: Unknown milestone
        """
        milestone = self.db.query(Milestone).filter(Milestone.milestone_id == milestone_id).first()
        if not milestone:
            raise NotFoundError("Milestone not found")
        return milestone

    def update(self, milestone_id: UUID, fields: Dict[str, Any]) -> Milestone:
        """
        Apply a partial update. Setting ``completed`` stamps or clears ``completed_at``.

        Raises:
            NotFoundError: Unknown milestone
            InvalidArgument: Blank title
        """
        milestone = self.get(milestone_id)

        for name in UPDATABLE_FIELDS:
            if name not in fields:
                continue
            value = fields[name]

            if name == "title":
                if not value or not value.strip():
                    raise InvalidArgument("Milestone title is required")
                value = value.strip()

            if name == "completed":
                value = bool(value)
                if value and not milestone.completed:
                    milestone.completed_at = utcnow()
                    record_activity(
                        self.db, milestone.client_id, ActivityType.MILESTONE_COMPLETED,
                        f"Milestone completed: {milestone.title}",
                    )
                elif not value:
                    milestone.completed_at = None

            setattr(milestone, name, value)

        self.db.commit()
        self.db.refresh(milestone)
        return milestone

    def delete(self, milestone_id: UUID) -> None:
        """
        Raises:
            NotFoundError: Unknown milestone
        """
        milestone = self.get(milestone_id)
        self.db.delete(milestone)
        self.db.commit()
        logger.info(f"🗑️  Milestone {milestone_id} deleted")

    async def suggest(self, client_id: UUID, apply: bool = False) -> Dict[str, Any]:
        """
        Ask the fast model for onboarding milestones.

        Due dates accumulate from now: each suggestion is due its
        ``estimated_days`` after the previous one.

        Args:
            client_id: Client to plan for
            apply: Insert the suggestions as AI-suggested milestones

        Returns:
            ``{"suggestions": [...], "milestones": [...]}``; ``milestones``
            holds the inserted rows when ``apply`` is set

        Raises:
            NotFoundError: Unknown client
            GenerationFailed: The model call failed or returned no usable list
        """
        if self.generator is None:
            raise GenerationFailed("Generation service is not configured")

        profile = self.profiles.require(client_id)

        user_prompt = render_prompt(
            "milestone_suggestions.md",
            company_name=profile.company_name,
            industry=profile.industry or "Not specified",
            business_model=profile.business_model or "Not specified",
            primary_goal=profile.primary_goal or "Not specified",
            monthly_budget_range=profile.monthly_budget_range or "Not specified",
        )

        try:
            raw = await self.generator.generate_structured(
                system_prompt=SUGGEST_SYSTEM_PROMPT,
                user_prompt=user_prompt,
                schema_hint=SUGGEST_SCHEMA_HINT,
                temperature=SUGGEST_TEMPERATURE,
                max_tokens=SUGGEST_MAX_TOKENS,
                model=self.generator.fast_model,
            )
            items = raw.get("milestones")
            if not isinstance(items, list):
                raise GenerationFailed("Structured output has no milestones list")
            suggestions = [MilestoneSuggestion.model_validate(item) for item in items]
        except (GenerationFailed, ValidationError) as e:
            logger.error(f"❌ Milestone suggestion failed for client {client_id}: {e}")
            raise GenerationFailed("Failed to generate milestone suggestions") from e

        now = utcnow()
        offset = 0
        for suggestion in suggestions:
            offset += suggestion.estimated_days or DEFAULT_ESTIMATED_DAYS
            suggestion.due_date = now + timedelta(days=offset)

        inserted: List[Milestone] = []
        if apply:
            order = self._next_display_order(client_id)
            for suggestion in suggestions:
                inserted.append(self._add(
                    client_id, suggestion.title, suggestion.description,
                    suggestion.due_date, True, order,
                ))
                order += 1
            record_activity(
                self.db, client_id, ActivityType.MILESTONE_CREATED,
                f"{len(inserted)} AI-suggested milestones added",
                {"ai_suggested": True, "count": len(inserted)},
            )
            self.db.commit()
            for milestone in inserted:
                self.db.refresh(milestone)

        logger.info(f"✅ {len(suggestions)} milestones suggested for client {client_id} (applied={apply})")
        return {"suggestions": suggestions, "milestones": inserted}
