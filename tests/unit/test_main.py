import signal
from unittest.mock import MagicMock, patch

import pytest

from kra_automation.main import _install_stop_handler, main


class TestStopHandler:
    def test_first_interrupt_requests_stop(self) -> None:
        orchestrator = MagicMock()
        previous = signal.getsignal(signal.SIGINT)
        try:
            _install_stop_handler(orchestrator)
            handler = signal.getsignal(signal.SIGINT)
            handler(signal.SIGINT, None)

            orchestrator.stop.assert_called_once()
            assert signal.getsignal(signal.SIGINT) is signal.default_int_handler
        finally:
            signal.signal(signal.SIGINT, previous)


class TestMain:
    @patch("kra_automation.main._install_stop_handler")
    @patch("kra_automation.main.close_pool")
    @patch("kra_automation.main.init_pool")
    @patch("kra_automation.main.build_orchestrator")
    def test_runs_configured_feature(
        self,
        mock_build: MagicMock,
        mock_init: MagicMock,
        mock_close: MagicMock,
        _mock_handler: MagicMock,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("AUTOMATION_FEATURE", "tcc")
        monkeypatch.setenv("RUN_OPTION", "range")

        main()

        mock_init.assert_called_once()
        assert mock_build.call_args[0][1] == "tcc"
        selection = mock_build.return_value.run.call_args[0][0]
        assert selection.mode == "range"
        mock_close.assert_called_once()

    @patch("kra_automation.main._install_stop_handler")
    @patch("kra_automation.main.close_pool")
    @patch("kra_automation.main.init_pool")
    @patch("kra_automation.main.build_orchestrator")
    def test_pool_closed_on_abort(
        self,
        mock_build: MagicMock,
        _mock_init: MagicMock,
        mock_close: MagicMock,
        _mock_handler: MagicMock,
    ) -> None:
        mock_build.return_value.run.side_effect = KeyboardInterrupt

        main()

        mock_close.assert_called_once()
