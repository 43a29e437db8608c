# gymdesk/repositories/templates_repo.py
from gymdesk.config import TEMPLATES_TABLE, TEMPLATE_COLUMNS
from gymdesk.models.records import ClassTemplateRecord


def load_templates(client) -> list[ClassTemplateRecord]:
    res = client.table(TEMPLATES_TABLE).select(TEMPLATE_COLUMNS).order("name").execute()
    return [ClassTemplateRecord.from_row(r) for r in (res.data or [])]


def insert_template(client, payload: dict) -> ClassTemplateRecord:
    res = client.table(TEMPLATES_TABLE).insert(payload).execute()
    return ClassTemplateRecord.from_row(res.data[0])


def update_template(client, template_id: str, changes: dict) -> None:
    client.table(TEMPLATES_TABLE).update(changes).eq("id", template_id).execute()


def delete_template(client, template_id: str) -> None:
    client.table(TEMPLATES_TABLE).delete().eq("id", template_id).execute()
