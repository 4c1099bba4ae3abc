# portal/services/gifts.py
"""
Welcome gift recommendations for new clients (admin only).

The fast model proposes one gift as a JSON object; the recommendation is
queued as an email to the agency admin.
"""

from typing import Any, Dict
from uuid import UUID
import logging

from pydantic import ValidationError
from sqlalchemy.orm import Session

from portal.errors import GenerationFailed
from portal.models.activity import ActivityType
from portal.schemas.admin import GiftRecommendation
from portal.services.activity import record_activity
from portal.services.generation import GenerationInvoker
from portal.services.notifications import Notifier, gift_email
from portal.services.profiles import ProfileStore
from portal.services.prompts import render_prompt

logger = logging.getLogger(__name__)

GIFT_SYSTEM_PROMPT = (
    "You are an expert in corporate gifting who creates memorable first impressions. "
    "Return only valid JSON."
)
GIFT_SCHEMA_HINT = """Return ONLY a JSON object with this structure:
{
  "giftName": "Branded Premium Notebook Set",
  "description": "Luxury leather-bound notebooks with their company colors",
  "reasoning": "Perfect for a professional services company that values thoughtful details",
  "estimatedCost": "$75",
  "vendor": "Moleskine or Leuchtturm1917",
  "fulfillmentNotes": "Can be ordered online with 2-day shipping. Consider embossing with company logo."
}"""
GIFT_TEMPERATURE = 0.8
GIFT_MAX_TOKENS = 400


class GiftAdvisor:
    def __init__(self, db: Session, generator: GenerationInvoker, notifier: Notifier):
        self.db = db
        self.generator = generator
        self.notifier = notifier
        self.profiles = ProfileStore(db)

    async def recommend(self, client_id: UUID) -> Dict[str, Any]:
        """
        Recommend a welcome gift and queue the admin email.

        Returns:
            ``{"recommendation": GiftRecommendation, "notification_id": UUID}``

        Raises:
            NotFoundError: Unknown client
            GenerationFailed: The model call failed or returned no usable object
        """
        profile = self.profiles.require(client_id)

        user_prompt = render_prompt(
            "gift_recommendation.md",
            company_name=profile.company_name,
            industry=profile.industry or "Not specified",
            business_model=profile.business_model or "Not specified",
            employee_count=profile.employee_count or "Not specified",
            monthly_budget_range=profile.monthly_budget_range or "Not specified",
            primary_goal=profile.primary_goal or "Not specified",
        )

        try:
            raw = await self.generator.generate_structured(
                system_prompt=GIFT_SYSTEM_PROMPT,
                user_prompt=user_prompt,
                schema_hint=GIFT_SCHEMA_HINT,
                temperature=GIFT_TEMPERATURE,
                max_tokens=GIFT_MAX_TOKENS,
                model=self.generator.fast_model,
            )
            recommendation = GiftRecommendation.model_validate(raw)
        except (GenerationFailed, ValidationError) as e:
            logger.error(f"❌ Gift recommendation failed for client {client_id}: {e}")
            raise GenerationFailed("Failed to generate gift recommendation") from e

        notification = self.notifier.enqueue_email(
            self.db,
            "gift_recommendation",
            self.notifier.settings.ADMIN_EMAIL,
            gift_email(profile.company_name, profile.industry, profile.unique_client_id, recommendation.model_dump()),
            client_id=profile.client_id,
        )
        record_activity(
            self.db, profile.client_id, ActivityType.GIFT_RECOMMENDED,
            f"Welcome gift recommended: {recommendation.gift_name}",
            {"estimated_cost": recommendation.estimated_cost},
        )
        self.db.commit()

        logger.info(f"🎁 Gift recommended for {profile.company_name}: {recommendation.gift_name}")
        return {"recommendation": recommendation, "notification_id": notification.notification_id}
