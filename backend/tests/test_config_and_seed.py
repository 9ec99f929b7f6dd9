import pytest
from sqlmodel import select

from studygroups import models
from studygroups.config import Settings
from studygroups.seed import DEMO_USERS, seed_demo_data


def test_settings_read_flags_from_env(monkeypatch):
    monkeypatch.setenv("UNIQUE_SUBJECTS", "false")
    monkeypatch.setenv("AUTO_PROVISION_USERS", "YES")
    monkeypatch.setenv("API_PREFIX", "/api/v1/")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    s = Settings()
    assert s.UNIQUE_SUBJECTS is False
    assert s.AUTO_PROVISION_USERS is True
    assert s.API_PREFIX == "/api/v1"
    assert s.LOG_LEVEL == "DEBUG"


def test_settings_reject_relative_prefix(monkeypatch):
    monkeypatch.setenv("API_PREFIX", "api")
    with pytest.raises(RuntimeError):
        Settings()


def test_seed_only_first_group_per_subject(session):
    created = seed_demo_data(session, unique_subjects=True)
    assert created == {"users": len(DEMO_USERS), "groups": 3}
    groups = session.exec(select(models.StudyGroup)).all()
    assert sorted(g.subject.value for g in groups) == ["Chemistry", "Math", "Physics"]
    algebra = next(g for g in groups if g.name == "Algebra Team")
    assert sorted(u.name for u in algebra.users) == ["Alice", "Bob", "Ethan"]


def test_seed_all_groups_and_skip_when_present(session):
    assert seed_demo_data(session, unique_subjects=False)["groups"] == 6
    assert seed_demo_data(session, unique_subjects=False) == {"users": 0, "groups": 0}
    assert len(session.exec(select(models.User)).all()) == len(DEMO_USERS)


def test_settings_reject_unknown_log_level(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "verbose")
    with pytest.raises(RuntimeError):
        Settings()
