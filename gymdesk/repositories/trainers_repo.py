# gymdesk/repositories/trainers_repo.py
from gymdesk.config import PROFILES_TABLE, TRAINER_COLUMNS, ROLE_TRAINER
from gymdesk.models.records import TrainerRecord


def load_trainers(client) -> list[TrainerRecord]:
    res = (
        client.table(PROFILES_TABLE)
        .select(TRAINER_COLUMNS)
        .eq("role", ROLE_TRAINER)
        .order("first_name")
        .execute()
    )
    return [TrainerRecord.from_row(r) for r in (res.data or [])]


def insert_trainer(client, payload: dict) -> TrainerRecord:
    res = client.table(PROFILES_TABLE).insert({**payload, "role": ROLE_TRAINER}).execute()
    return TrainerRecord.from_row(res.data[0])


def update_trainer(client, trainer_id: str, changes: dict) -> None:
    client.table(PROFILES_TABLE).update(changes).eq("id", trainer_id).execute()


def delete_trainer(client, trainer_id: str) -> None:
    client.table(PROFILES_TABLE).delete().eq("id", trainer_id).execute()
