"""
Unit tests for the media library service.
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.exceptions import NotFoundError
from app.db.base import Base
from app.db.models.media import MediaDownload
from app.db.models.user import User
from app.services import library_service


# Setup in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=test_engine)
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def owner(db):
    user = User(external_id="owner", email="owner@example.com")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def other_user(db):
    user = User(external_id="other", email="other@example.com")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def items(db, owner):
    created = [
        library_service.create_download_job(db, owner.id, "https://youtu.be/1", platform="youtube"),
        library_service.create_download_job(db, owner.id, "https://youtu.be/2", platform="youtube"),
        library_service.create_download_job(db, owner.id, "https://tiktok.com/3", platform="tiktok"),
    ]
    return created


def test_normalize_tags():
    assert library_service.normalize_tags([" Travel ", "travel", "", "Food"]) == ["travel", "food"]
    assert library_service.normalize_tags(None) == []


def test_create_download_job_defaults(db, owner):
    item = library_service.create_download_job(db, owner.id, "https://youtu.be/x")

    assert item.download_status == "queued"
    assert item.file_type == "video"
    assert item.archived is False
    assert item.favorite is False


def test_archive_with_tags(db, owner, items):
    ids = [items[0].id, items[2].id]

    result = library_service.organize_library(db, owner.id, ids, "archive", ["Summer", "summer"])

    assert result["processed_count"] == 2
    assert result["tags_added"] == ["summer"]
    assert result["platform_breakdown"] == {"youtube": 1, "tiktok": 1}
    archived = library_service.list_library(db, owner.id, archived=True)
    assert {item.id for item in archived} == set(ids)
    assert all(item.tag_names == ["summer"] for item in archived)
    assert all(item.archived_at is not None for item in archived)


def test_favorite_does_not_duplicate_tags(db, owner, items):
    library_service.organize_library(db, owner.id, [items[1].id], "favorite", ["best"])
    library_service.organize_library(db, owner.id, [items[1].id], "favorite", ["best", "reel"])

    db.refresh(items[1])
    assert items[1].favorite is True
    assert items[1].tag_names == ["best", "reel"]
    assert [i.id for i in library_service.list_library(db, owner.id, tag="REEL")] == [items[1].id]


def test_delete(db, owner, items):
    result = library_service.organize_library(db, owner.id, [items[0].id], "delete")

    assert result["tags_added"] == []
    assert db.query(MediaDownload).filter(MediaDownload.id == items[0].id).first() is None


def test_foreign_items_are_not_found(db, owner, other_user, items):
    foreign = library_service.create_download_job(db, other_user.id, "https://youtu.be/z")

    with pytest.raises(NotFoundError) as exc_info:
        library_service.organize_library(db, owner.id, [items[0].id, foreign.id], "delete")

    assert str(foreign.id) in str(exc_info.value)
    assert db.query(MediaDownload).count() == 4


def test_unsupported_action(db, owner, items):
    with pytest.raises(ValueError):
        library_service.organize_library(db, owner.id, [items[0].id], "share")
