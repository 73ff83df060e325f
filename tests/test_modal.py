import pytest

from gestion.core.load_state import LoadState
from gestion.ui.modal import ModalMode, modal_content


@pytest.mark.parametrize(
    "load,kwargs,mode,show_retry",
    [
        (None, {}, ModalMode.CONTENT, False),
        (LoadState.OK, {}, ModalMode.CONTENT, False),
        (LoadState.IDLE, {}, ModalMode.NOTHING, False),
        (LoadState.IDLE, {"has_idle": True}, ModalMode.IDLE, False),
        (LoadState.LOADING, {"has_retry": True}, ModalMode.LOADING, False),
        (LoadState.ERROR, {}, ModalMode.ERROR, False),
        (LoadState.ERROR, {"has_retry": True}, ModalMode.ERROR, True),
    ],
)
def test_modal_content(load, kwargs, mode, show_retry):
    decision = modal_content(load, **kwargs)
    assert decision.mode is mode
    assert decision.show_retry is show_retry
