"""
Reward points ledger and redemption rules.

The spendable balance is never stored. It is derived every time from the
achievement catalog, the user's progress and their redemption history:
points of unlocked achievements minus points spent on redemptions that were
not cancelled.
"""
import logging
import uuid
from datetime import datetime
from typing import List, Optional

from hub.achievements import load_catalog, load_progress, total_points
from hub.config import REDEMPTION_STATUS_OPTIONS
from hub.database import get_db, DB_ERRORS, PH
from hub.store import StoreError

logger = logging.getLogger(__name__)

STATUS_CANCELLED = 'cancelled'
STATUS_DELIVERED = 'delivered'

# Allowed moves between redemption statuses
REDEMPTION_TRANSITIONS = {
    'pending': ['approved', 'cancelled'],
    'approved': ['delivered', 'cancelled'],
    'delivered': [],
    'cancelled': [],
}


class RedemptionRejected(Exception):
    """Redemption refused before anything was written."""


def earned_points(catalog: Optional[List[dict]], progress_rows: Optional[List[dict]]) -> int:
    return total_points(catalog, progress_rows)


def spent_points(redemptions: Optional[List[dict]]) -> int:
    """Points consumed by redemptions that were not cancelled."""
    return sum(
        r.get('points_spent') or 0
        for r in (redemptions or [])
        if r.get('status') != STATUS_CANCELLED
    )


def points_balance(catalog: Optional[List[dict]], progress_rows: Optional[List[dict]],
                   redemptions: Optional[List[dict]]) -> int:
    return earned_points(catalog, progress_rows) - spent_points(redemptions)


def can_afford(reward: dict, balance: int) -> bool:
    return balance >= (reward.get('points_cost') or 0)


def in_stock(reward: dict) -> bool:
    """stock_quantity None means unlimited."""
    stock = reward.get('stock_quantity')
    return stock is None or stock > 0


def check_redemption(reward: Optional[dict], balance: int) -> None:
    """Raise RedemptionRejected when the reward cannot be redeemed."""
    if reward is None:
        raise RedemptionRejected("Reward not found")
    if not reward.get('active'):
        raise RedemptionRejected("This reward is no longer available")
    if (reward.get('points_cost') or 0) <= 0:
        raise RedemptionRejected("This reward has no valid points cost")
    if not in_stock(reward):
        raise RedemptionRejected("This reward is out of stock")
    if not can_afford(reward, balance):
        raise RedemptionRejected("Not enough points!")


def load_redemptions(store, user_id: str) -> List[dict]:
    """User's redemptions, newest first, each with its reward row attached."""
    redemptions = store.select('reward_redemptions', {'user_id': user_id},
                               order_by='created_at', descending=True)
    reward_ids = list({r['reward_id'] for r in redemptions})
    rewards = {r['id']: r for r in store.select('rewards', {'id': reward_ids})} if reward_ids else {}
    for redemption in redemptions:
        redemption['reward'] = rewards.get(redemption['reward_id'])
    return redemptions


def load_balance(store, user_id: str) -> int:
    """Fresh balance for a user. Raises StoreError."""
    return points_balance(
        load_catalog(store),
        load_progress(store, user_id),
        store.select('reward_redemptions', {'user_id': user_id}),
    )


def redeem_reward(store, user_id: str, reward_id: str) -> int:
    """
    Redeem a reward for a user and return the new balance.

    The balance is re-derived from freshly loaded rows and checked before
    the redemption is written. The stock decrement and the redemption row
    are written in one transaction; a finite stock is only taken while it
    is still above zero.
    """
    reward = store.get('rewards', reward_id)
    balance = load_balance(store, user_id)
    check_redemption(reward, balance)

    cost = reward['points_cost']
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            if reward.get('stock_quantity') is not None:
                cursor.execute(
                    f"UPDATE rewards SET stock_quantity = stock_quantity - 1, updated_at = CURRENT_TIMESTAMP "
                    f"WHERE id = {PH} AND stock_quantity > 0",
                    [reward_id]
                )
                if cursor.rowcount == 0:
                    raise RedemptionRejected("This reward is out of stock")
            cursor.execute(
                f"INSERT INTO reward_redemptions (id, user_id, reward_id, points_spent, status) "
                f"VALUES ({PH}, {PH}, {PH}, {PH}, {PH})",
                [str(uuid.uuid4()), user_id, reward_id, cost, 'pending']
            )
    except DB_ERRORS as e:
        logger.error("Redemption of %s by %s failed: %s", reward_id, user_id, e)
        raise StoreError(f"Could not save to reward_redemptions: {e}") from e

    logger.info("User %s redeemed reward %s for %d points", user_id, reward_id, cost)
    return balance - cost


def set_redemption_status(store, redemption_id: str, status: str) -> dict:
    """
    Move a redemption along pending -> approved -> delivered, or cancel it.
    Cancelling puts the unit back into a finite stock.
    """
    if status not in REDEMPTION_STATUS_OPTIONS:
        raise ValueError(f"Invalid redemption status '{status}'")
    redemption = store.get('reward_redemptions', redemption_id)
    if redemption is None:
        raise ValueError("Redemption not found")
    if status not in REDEMPTION_TRANSITIONS[redemption['status']]:
        raise ValueError(f"Cannot move a {redemption['status']} redemption to {status}")

    values = {
        'status': status,
        'delivered_at': datetime.now().isoformat(timespec='seconds') if status == STATUS_DELIVERED else None,
    }
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            # Only applies while the row still has the status checked above
            cursor.execute(
                f"UPDATE reward_redemptions SET status = {PH}, delivered_at = {PH} "
                f"WHERE id = {PH} AND status = {PH}",
                [values['status'], values['delivered_at'], redemption_id, redemption['status']]
            )
            if cursor.rowcount == 0:
                raise ValueError("Redemption was changed by someone else, reload and try again")
            if status == STATUS_CANCELLED:
                cursor.execute(
                    f"UPDATE rewards SET stock_quantity = stock_quantity + 1, updated_at = CURRENT_TIMESTAMP "
                    f"WHERE id = {PH} AND stock_quantity IS NOT NULL",
                    [redemption['reward_id']]
                )
    except DB_ERRORS as e:
        logger.error("Status change of redemption %s failed: %s", redemption_id, e)
        raise StoreError(f"Could not update reward_redemptions: {e}") from e

    redemption.update(values)
    return redemption
