import threading

import pytest

from users_service.models import EmailAlreadyRegistered, UserRepository


def test_ids_start_at_one_and_increase():
    repo = UserRepository()
    first = repo.add("John", "Doe", "john@example.com")
    second = repo.add("Jane", "Roe", "jane@example.com")
    assert (first.id, second.id) == (1, 2)


def test_get_returns_created_record():
    repo = UserRepository()
    user = repo.add("John", "Doe", "john@example.com")
    assert repo.get(user.id) == user
    assert repo.get(user.id + 1) is None


def test_duplicate_email_rejected_by_store():
    repo = UserRepository()
    repo.add("John", "Doe", "john@example.com")
    with pytest.raises(EmailAlreadyRegistered):
        repo.add("Other", "Person", "John@Example.com")
    assert len(repo.list()) == 1


def test_concurrent_adds_get_distinct_ids():
    repo = UserRepository()
    threads = [
        threading.Thread(target=repo.add, args=("U", str(i), f"u{i}@example.com"))
        for i in range(50)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    ids = [u.id for u in repo.list()]
    assert sorted(ids) == list(range(1, 51))
