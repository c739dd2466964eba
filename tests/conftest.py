from typing import Generator

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from config import EngineSettings
from db.models import Base
from domain.inventory import FifoLedgerEngine
from domain.quality import QualityAssessor
from domain.swap_classifier import SwapClassifier
from tests.helpers.time_utils import DEFAULT_TIME_GEN

engine: Engine = create_engine("sqlite:///:memory:", connect_args={"check_same_thread": False})
session_factory = sessionmaker(engine)


@pytest.fixture(scope="function")
def test_session() -> Generator[Session, None, None]:
    with session_factory() as session:
        yield session


@pytest.fixture(scope="function", autouse=True)
def reset_db() -> Generator[None, None, None]:
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(autouse=True)
def _reset_default_time_gen() -> None:
    DEFAULT_TIME_GEN.reset()


@pytest.fixture(scope="function")
def settings() -> EngineSettings:
    return EngineSettings(_env_file=None)


@pytest.fixture(scope="function")
def ledger_engine(settings: EngineSettings) -> FifoLedgerEngine:
    return FifoLedgerEngine(settings=settings)


@pytest.fixture(scope="function")
def classifier(settings: EngineSettings) -> SwapClassifier:
    return SwapClassifier(settings=settings)


@pytest.fixture(scope="function")
def assessor(settings: EngineSettings) -> QualityAssessor:
    return QualityAssessor(settings=settings)
