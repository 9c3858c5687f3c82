"""Shared test fixtures and configuration.

Provides infrastructure to isolate tests from real filesystem state.
"""

from __future__ import annotations

import logging
from unittest.mock import patch

import pytest

from speechtimer_cli.models.agenda import AgendaItem, SessionCategory

# ---------------------------------------------------------------------------
# Filesystem isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path):
    """Keep logs, config and data files inside *tmp_path*.

    Also resets the logger singleton and clears the config service cache so
    each test starts from defaults.
    """
    from speechtimer_cli.services.config_service import get_config_service
    from speechtimer_cli.utils import logger as logger_module

    dirs = {name: str(tmp_path / name) for name in ("config", "data", "logs")}
    logger_module._logger = None
    get_config_service.cache_clear()

    with patch("speechtimer_cli.utils.logger.user_log_dir", return_value=dirs["logs"]):
        with patch(
            "speechtimer_cli.services.config_service.user_config_dir",
            return_value=dirs["config"],
        ):
            with patch(
                "speechtimer_cli.services.config_service.user_data_dir",
                return_value=dirs["data"],
            ):
                with patch(
                    "speechtimer_cli.services.agenda_service.user_data_dir",
                    return_value=dirs["data"],
                ):
                    yield tmp_path

    get_config_service.cache_clear()
    app_logger = logging.getLogger("speechtimer_cli")
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()
    logger_module._logger = None


@pytest.fixture()
def tmp_config():
    """Provide the real ConfigService backed by the isolated directories."""
    from speechtimer_cli.services.config_service import get_config_service

    return get_config_service()


# ---------------------------------------------------------------------------
# Agenda helpers
# ---------------------------------------------------------------------------


@pytest.fixture()
def speech_item() -> AgendaItem:
    """A seven-minute prepared speech."""
    return AgendaItem(
        id="speech1",
        title="备稿演讲：《科技改变生活》",
        duration=420,
        category=SessionCategory.PREPARED_SPEECH,
        speaker="陈演讲者",
        scheduled_time="19:20:00",
        level="CC",
    )


@pytest.fixture()
def impromptu_item() -> AgendaItem:
    """A table topics segment that uses personal sub-timers."""
    return AgendaItem(
        id="topics1",
        title="即兴演讲环节",
        duration=1200,
        category=SessionCategory.SHORT_EVALUATION,
        speaker="刘主持人",
    )
