# notifier.py
# pushes the top recommendation for a meal to a user

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable, List

from collaborators import NotificationDelivery, SourceUnavailableError
from recommender import RecommendationService
from utils import format_distance

log = logging.getLogger("mealspot.notify")

MEAL_EMOJI = {"breakfast": "🍳", "lunch": "🍽️", "dinner": "🌙"}

BATCH_SIZE = 10


@dataclass
class BatchReport:
    sent: int = 0
    failed: int = 0
    delivered: List[str] = field(default_factory=list)


class RecommendationNotifier:
    def __init__(
        self,
        recommender: RecommendationService,
        delivery: NotificationDelivery,
        max_distance_m: float = 2000,
        limit: int = 3,
    ):
        self.recommender = recommender
        self.delivery = delivery
        self.max_distance_m = max_distance_m
        self.limit = limit

    async def send_recommendation_notification(self, user_id: str, meal_type: str) -> bool:
        """
        False when there is nothing to recommend (delivery is not contacted) or when
        delivery fails. Only SourceUnavailableError from the recommender propagates.
        """
        recs = await self.recommender.generate_recommendations(user_id, meal_type, self.max_distance_m, self.limit)
        if not recs:
            log.info("no recommendations to send for %s (%s)", user_id, meal_type)
            return False

        top = recs[0]
        title = f"{MEAL_EMOJI.get(meal_type, '🍽️')} {meal_type.capitalize()} Recommendation"
        body = f"Try {top.name} - {format_distance(top.distance_meters)}. {top.reason}"
        payload = {
            "venueId": top.reference_id,
            "sourceKind": top.source_kind,
            "mealType": meal_type,
            "distance": top.distance_meters,
            "score": top.score,
        }

        try:
            return bool(await self.delivery.push(user_id, title, body, payload))
        except Exception:
            log.exception("push delivery failed for %s", user_id)
            return False

    async def send_batch(self, user_ids: Iterable[str], meal_type: str) -> BatchReport:
        """Notify users in concurrent batches; one user's failure never stops the rest."""
        ids: List[str] = list(user_ids)
        report = BatchReport()

        async def one(uid: str) -> bool:
            try:
                return await self.send_recommendation_notification(uid, meal_type)
            except SourceUnavailableError as e:
                log.warning("skipping %s: %s", uid, e)
                return False

        for i in range(0, len(ids), BATCH_SIZE):
            chunk = ids[i:i + BATCH_SIZE]
            results = await asyncio.gather(*(one(uid) for uid in chunk))
            for uid, ok in zip(chunk, results):
                if ok:
                    report.sent += 1
                    report.delivered.append(uid)
                else:
                    report.failed += 1

        log.info("%s batch: %d sent, %d failed", meal_type, report.sent, report.failed)
        return report
