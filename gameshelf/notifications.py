"""
Maintenance reminder requests and notification history.

Only the scheduling decisions live here: which reminders should fire and
when. Requests are kept per ``(entityId, entityKind)`` key so scheduling
the same item again replaces its previous requests. Delivering them is
the platform's job.
"""
import logging
import threading
import uuid
from datetime import datetime, time, timedelta
from typing import Dict, List

from gameshelf.constants import NOTIFICATIONS_FILE
from gameshelf.utils import now_utc, parse_date, read_json, safe_write_json

logger = logging.getLogger('main')

REMINDER = 'maintenance_reminder'
DUE = 'maintenance_due'


def schedule_key(entity_id: str, entity_kind: str) -> str:
    return f"{entity_kind}:{entity_id}"


def plan_reminders(next_maintenance_date, now: datetime = None, days_before: int = 7, hour: int = 9) -> List[Dict]:
    """
    Work out which reminders to schedule for a due date.

    One reminder ``days_before`` days ahead and one on the due day, both at
    ``hour`` local time, and only those still in the future.
    """
    now = now or datetime.now()
    due = parse_date(next_maintenance_date)
    diff_days = (due - now.date()).days
    plans = []
    if diff_days < 0:
        return plans

    if diff_days >= days_before:
        early = datetime.combine(due - timedelta(days=days_before), time(hour=hour))
        if early > now:
            plans.append({'type': REMINDER, 'triggerAt': early})

    due_day = datetime.combine(due, time(hour=hour))
    if due_day > now:
        plans.append({'type': DUE, 'triggerAt': due_day})
    return plans


class MaintenanceNotifier:
    def __init__(self, path: str = NOTIFICATIONS_FILE, days_before: int = 7, hour: int = 9, history_limit: int = 50):
        self.path = path
        self.days_before = days_before
        self.hour = hour
        self.history_limit = history_limit
        self._lock = threading.Lock()

    def _load(self) -> Dict:
        data = read_json(self.path, default=None) or {}
        data.setdefault('scheduled', {})
        data.setdefault('history', [])
        return data

    def _save(self, data: Dict):
        safe_write_json(self.path, data)

    def _message(self, request_type: str, item_name: str):
        if request_type == REMINDER:
            return ('Maintenance reminder',
                    f"Maintenance for {item_name} is scheduled in {self.days_before} days.")
        return ('Maintenance due today', f"Today is the scheduled maintenance day for {item_name}.")

    def schedule(self, entity_id: str, item_name: str, entity_kind: str, next_maintenance_date: str,
                 now: datetime = None) -> List[Dict]:
        """Replace any requests for the item with freshly planned ones"""
        key = schedule_key(entity_id, entity_kind)
        try:
            plans = plan_reminders(next_maintenance_date, now=now, days_before=self.days_before, hour=self.hour)
        except (TypeError, ValueError) as e:
            logger.error(f"Cannot schedule reminders for {key}: {e}")
            plans = []

        requests = []
        for plan in plans:
            title, body = self._message(plan['type'], item_name)
            requests.append({
                'id': uuid.uuid4().hex,
                'entityId': entity_id,
                'entityKind': entity_kind,
                'type': plan['type'],
                'title': title,
                'body': body,
                'triggerAt': plan['triggerAt'].isoformat(),
                'maintenanceDate': next_maintenance_date,
            })

        with self._lock:
            data = self._load()
            data['scheduled'].pop(key, None)
            if requests:
                data['scheduled'][key] = requests
                for request in requests:
                    data['history'].insert(0, {
                        'id': request['id'],
                        'title': request['title'],
                        'body': request['body'],
                        'date': now_utc().isoformat(),
                        'read': False,
                        'itemId': entity_id,
                        'itemType': entity_kind,
                        'maintenanceDate': next_maintenance_date,
                    })
                data['history'] = data['history'][:self.history_limit]
            self._save(data)

        logger.info(f"Scheduled {len(requests)} reminder(s) for {key}")
        return requests

    def cancel(self, entity_id: str, entity_kind: str) -> int:
        key = schedule_key(entity_id, entity_kind)
        with self._lock:
            data = self._load()
            removed = data['scheduled'].pop(key, [])
            if removed:
                self._save(data)
        if removed:
            logger.info(f"Cancelled {len(removed)} reminder(s) for {key}")
        return len(removed)

    def get_scheduled(self, entity_id: str = None, entity_kind: str = None) -> List[Dict]:
        with self._lock:
            scheduled = self._load()['scheduled']
        if entity_id and entity_kind:
            return list(scheduled.get(schedule_key(entity_id, entity_kind), []))
        return [request for requests in scheduled.values() for request in requests]

    def sync(self, entity: Dict, entity_kind: str) -> List[Dict]:
        """Schedule or cancel reminders to match the entity's maintenance fields"""
        if entity.get('notifyMaintenance') and entity.get('nextMaintenanceDate'):
            return self.schedule(entity['id'], entity.get('name', ''), entity_kind, entity['nextMaintenanceDate'])
        self.cancel(entity['id'], entity_kind)
        return []

    # History
    def get_history(self) -> List[Dict]:
        with self._lock:
            return self._load()['history']

    def mark_as_read(self, notification_id: str) -> bool:
        with self._lock:
            data = self._load()
            found = False
            for entry in data['history']:
                if entry['id'] == notification_id:
                    entry['read'] = True
                    found = True
            if found:
                self._save(data)
        return found

    def mark_all_as_read(self):
        with self._lock:
            data = self._load()
            for entry in data['history']:
                entry['read'] = True
            self._save(data)

    def count_unread(self) -> int:
        return len([entry for entry in self.get_history() if not entry.get('read')])

    def clear_history(self):
        with self._lock:
            data = self._load()
            data['history'] = []
            self._save(data)
        logger.info("Notification history cleared")
