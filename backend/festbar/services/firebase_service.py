"""Firebase Cloud Messaging (FCM) push notifications for waiter devices."""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

import firebase_admin
from firebase_admin import credentials as fb_credentials
from firebase_admin import messaging

from festbar.models.order import Order

logger = logging.getLogger(__name__)

VIBRATE_PATTERN = [500, 200, 500, 200, 500, 200, 500]


def build_order_notification(order: Order) -> Tuple[str, str, Dict[str, str]]:
    """Title, body and data payload announcing a new order or waiter call."""
    if order.is_waiter_call:
        title = f"Tisch {order.table_number} ruft!"
        body = "Kellner wird gerufen - Tippe zum Öffnen"
    else:
        item_count = sum(line.quantity for line in order.lines)
        title = f"Neue Bestellung Tisch {order.table_number}"
        body = f"{item_count} Artikel - {Decimal(order.total or 0):.2f} €"

    data = {
        "order_id": str(order.id),
        "table_number": str(order.table_number),
        "type": order.kind,
        "timestamp": order.created_at.isoformat(),
    }
    return title, body, data


class FirebasePushService:
    """Send push notifications via Firebase Cloud Messaging (FCM v1 API)."""

    def __init__(self):
        self._initialized = False
        self._app = None

    @property
    def enabled(self) -> bool:
        return self._initialized

    def initialize(self, credentials_path: Optional[str] = None):
        """Initialize Firebase Admin SDK.

        Without a service account file push notifications stay disabled.
        """
        if not credentials_path:
            logger.info("No Firebase credentials configured, push notifications disabled")
            return
        try:
            cred = fb_credentials.Certificate(credentials_path)
            self._app = firebase_admin.initialize_app(cred)
            self._initialized = True
            logger.info("Firebase Admin SDK initialized")
        except Exception as e:
            logger.warning(f"Firebase initialization failed: {e}. Push notifications disabled.")

    async def send_multicast(
        self, tokens: List[str], title: str, body: str, data: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        """Send a high-priority notification to multiple devices."""
        if not tokens:
            return {"success_count": 0, "failure_count": 0}
        if not self._initialized:
            logger.debug("Firebase not initialized, skipping push notification")
            return {"success_count": 0, "failure_count": len(tokens)}
        try:
            message = messaging.MulticastMessage(
                notification=messaging.Notification(title=title, body=body),
                data=data or {},
                tokens=tokens,
                android=messaging.AndroidConfig(
                    priority="high",
                    notification=messaging.AndroidNotification(
                        channel_id="orders",
                        priority="max",
                        default_sound=True,
                        vibrate_timings_millis=VIBRATE_PATTERN,
                    ),
                ),
                webpush=messaging.WebpushConfig(
                    headers={"Urgency": "high"},
                    notification=messaging.WebpushNotification(
                        require_interaction=True,
                        renotify=True,
                        tag=f"order-{(data or {}).get('order_id', '')}",
                        vibrate=VIBRATE_PATTERN,
                    ),
                ),
                apns=messaging.APNSConfig(
                    payload=messaging.APNSPayload(
                        aps=messaging.Aps(sound="default", badge=1, content_available=True),
                    ),
                ),
            )
            response = messaging.send_each_for_multicast(message, app=self._app)
            for idx, resp in enumerate(response.responses):
                if not resp.success:
                    logger.warning(f"Push to token #{idx} failed: {resp.exception}")
            logger.info(
                f"Push notification sent: {response.success_count} ok, {response.failure_count} failed"
            )
            return {
                "success_count": response.success_count,
                "failure_count": response.failure_count,
            }
        except Exception as e:
            logger.error(f"Multicast notification failed: {e}")
            return {"success_count": 0, "failure_count": len(tokens)}

    async def notify_new_order(
        self, tokens: List[str], title: str, body: str, data: Dict[str, str]
    ) -> Dict[str, Any]:
        """Announce a new order to the waiters assigned to its table."""
        if not tokens:
            logger.debug(f"No FCM tokens for table {data.get('table_number')}, nothing to send")
        return await self.send_multicast(tokens, title, body, data)


firebase_push = FirebasePushService()
