"""
Preventive-maintenance scheduling for consoles and accessories.

Everything here is a pure function over entity dicts, except
``mark_maintenance_done`` which goes through the store's update path.
Dates are handled as ``datetime.date`` and only parsed/formatted at the
edges (stored values are DD/MM/YYYY strings).
"""
import logging
from datetime import date
from typing import Dict, List, Optional

from gameshelf.constants import (
    ACCESSORIES,
    ATTENTION_DAYS,
    CONSOLES,
    KIND_ACCESSORY,
    KIND_CONSOLE,
    MAINTAINABLE_KINDS,
    STATUS_ATTENTION,
    STATUS_NORMAL,
    STATUS_OVERDUE,
    STATUS_URGENT,
    URGENT_DAYS,
)
from gameshelf.utils import add_months, days_between, format_date, parse_date, today_local

logger = logging.getLogger('main')


def calculate_next_maintenance_date(last_maintenance_date, interval_months) -> Optional[str]:
    """``last_maintenance_date`` plus ``interval_months`` months, as DD/MM/YYYY"""
    if not last_maintenance_date or not interval_months:
        return None
    try:
        last = parse_date(last_maintenance_date)
    except (TypeError, ValueError) as e:
        logger.error(f"Invalid last maintenance date {last_maintenance_date!r}: {e}")
        return None
    return format_date(add_months(last, int(interval_months)))


def maintenance_inputs_changed(current: Dict, changes: Dict) -> bool:
    """True when ``changes`` alters either input of the next-date computation"""
    for field in ('lastMaintenanceDate', 'maintenanceIntervalMonths'):
        if field in changes and changes[field] != current.get(field):
            return True
    return False


def days_remaining(next_maintenance_date, today: date = None) -> int:
    """Whole days until the due date; negative once it has passed"""
    today = today or today_local()
    return days_between(today, parse_date(next_maintenance_date))


def classify(days: int) -> str:
    if days < 0:
        return STATUS_OVERDUE
    if days <= URGENT_DAYS:
        return STATUS_URGENT
    if days <= ATTENTION_DAYS:
        return STATUS_ATTENTION
    return STATUS_NORMAL


def _due_date(item: Dict) -> Optional[date]:
    # Without a last maintenance date nothing can be derived
    if not item.get('lastMaintenanceDate'):
        return None
    stored = item.get('nextMaintenanceDate')
    if stored:
        return parse_date(stored)
    derived = calculate_next_maintenance_date(item['lastMaintenanceDate'], item.get('maintenanceIntervalMonths'))
    return parse_date(derived) if derived else None


def build_maintenance_item(item: Dict, kind: str, today: date = None) -> Optional[Dict]:
    try:
        due = _due_date(item)
    except (TypeError, ValueError) as e:
        logger.error(f"Skipping {kind} {item.get('id')}: invalid maintenance date ({e})")
        return None
    if due is None:
        return None

    remaining = days_between(today or today_local(), due)
    entry = {
        'id': item.get('id'),
        'name': item.get('name'),
        'type': kind,
        'nextMaintenanceDate': format_date(due),
        'lastMaintenanceDate': item.get('lastMaintenanceDate'),
        'maintenanceIntervalMonths': item.get('maintenanceIntervalMonths'),
        'notifyMaintenance': bool(item.get('notifyMaintenance')),
        'daysRemaining': remaining,
        'status': classify(remaining),
    }
    if kind == KIND_ACCESSORY:
        entry['itemType'] = item.get('type')
    return entry


def get_maintenance_items(consoles: List[Dict], accessories: List[Dict], today: date = None) -> List[Dict]:
    """
    All consoles/accessories with a derivable due date, most urgent first.

    Items without a ``lastMaintenanceDate`` are omitted silently.
    """
    today = today or today_local()
    items = []
    for kind, entities in ((KIND_CONSOLE, consoles), (KIND_ACCESSORY, accessories)):
        for entity in entities or []:
            entry = build_maintenance_item(entity, kind, today)
            if entry:
                items.append(entry)
    items.sort(key=lambda entry: entry['daysRemaining'])
    return items


def get_upcoming_maintenance_items(
    consoles: List[Dict], accessories: List[Dict], today: date = None, days_before: int = URGENT_DAYS
) -> List[Dict]:
    """Items due today or exactly ``days_before`` days from today"""
    return [
        item
        for item in get_maintenance_items(consoles, accessories, today)
        if item['daysRemaining'] in (0, days_before)
    ]


def mark_maintenance_done(store, kind: str, entity_id: str, today: date = None) -> Optional[Dict]:
    """
    Record maintenance as performed today (local calendar date).

    Goes through the store's update path so ``nextMaintenanceDate`` is
    recomputed and reminders rescheduled. Returns the updated entity, or
    None when ``entity_id`` does not exist.
    """
    collection = MAINTAINABLE_KINDS.get(kind)
    if collection is None:
        raise ValueError(f"Maintenance is not tracked for '{kind}'")
    today = today or today_local()
    logger.info(f"Marking maintenance done for {kind} {entity_id} on {format_date(today)}")
    return store.update(collection, entity_id, {'lastMaintenanceDate': format_date(today)})


def kind_for_collection(collection: str) -> Optional[str]:
    return {CONSOLES: KIND_CONSOLE, ACCESSORIES: KIND_ACCESSORY}.get(collection)
