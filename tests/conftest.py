from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

import pytest

from fire_muster.client.marshal_client import MarshalClient
from fire_muster.container import Container, build_memory_container
from fire_muster.database.memory_store import InMemoryStore
from fire_muster.employees.model import Employee
from fire_muster.marshals.model import Marshal
from fire_muster.realtime.feed import ChangeFeed


@dataclass
class Roster:
    alex: Marshal
    priya: Marshal
    amelia: Employee
    ben: Employee
    daniel: Employee
    ivan: Employee


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 4, 10, 0, 0)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore(ChangeFeed())


@pytest.fixture
def container(store: InMemoryStore) -> Container:
    return build_memory_container(store=store)


@pytest.fixture
def roster(container: Container) -> Roster:
    alex = container.marshal_service.add_marshal("Alex Morgan")
    priya = container.marshal_service.add_marshal("Priya Shah")
    return Roster(
        alex=alex,
        priya=priya,
        amelia=container.employee_service.add_employee("Amelia Clarke", dept="Finance", marshal_id=alex.marshal_id),
        ben=container.employee_service.add_employee("Ben Osei", dept="Finance", marshal_id=alex.marshal_id),
        daniel=container.employee_service.add_employee("Daniel Kim", dept="Technical", marshal_id=priya.marshal_id),
        ivan=container.employee_service.add_employee("Ivan Petrov", dept="Credit"),
    )


def _client(container: Container, marshal: Marshal, name: str) -> MarshalClient:
    client = MarshalClient(container, name=name)
    assert client.connect()
    client.select_marshal(marshal.marshal_id)
    return client


@pytest.fixture
def alex_client(container: Container, roster: Roster):
    client = _client(container, roster.alex, "alex")
    yield client
    client.close()


@pytest.fixture
def priya_client(container: Container, roster: Roster):
    client = _client(container, roster.priya, "priya")
    yield client
    client.close()
