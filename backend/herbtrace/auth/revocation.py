"""JWT revocation using a Redis blacklist.

Logout blacklists the presented access token until its natural expiry.
"""

import logging
import time

from herbtrace.utils.redis import get_redis

logger = logging.getLogger(__name__)


class TokenRevocation:
    """Manage JWT token revocation with Redis."""

    @staticmethod
    async def revoke_token(token: str, expires_at: float) -> bool:
        """Add token to the revocation list.

        Args:
            token: JWT token to revoke
            expires_at: Unix timestamp when the token naturally expires

        Returns:
            True if successfully revoked
        """
        ttl = int(expires_at - time.time())
        if ttl <= 0:
            # Already expired, nothing to blacklist
            return True

        redis_client = await get_redis()
        try:
            await redis_client.setex(f"revoked:{token}", ttl, str(int(time.time())))
            return True
        except Exception as e:
            logger.error(f"Failed to revoke token: {e}")
            return False

    @staticmethod
    async def is_revoked(token: str) -> bool:
        """Check whether a token is revoked.

        Fails closed: if Redis cannot be reached the token is treated as revoked.
        """
        redis_client = await get_redis()
        try:
            exists = await redis_client.exists(f"revoked:{token}")
            return exists > 0
        except Exception as e:
            logger.error(f"Failed to check token revocation: {e}")
            return True
