import pytest

from app.core.events import ErrorEmitter, PERMISSION_ERROR
from app.core.exceptions import PermissionDeniedError
from app.core.permission_listener import PermissionErrorListener
from app.core.toasts import Toast, ToastSink, toast, toast_scope


def denial():
    return PermissionDeniedError("users/bob/qarzs", "list")


def test_emitter_delivers_to_listeners_in_order():
    emitter = ErrorEmitter()
    calls = []
    emitter.on(PERMISSION_ERROR, lambda e: calls.append(("first", e)))
    emitter.on(PERMISSION_ERROR, lambda e: calls.append(("second", e)))

    error = denial()
    emitter.emit(PERMISSION_ERROR, error)
    assert calls == [("first", error), ("second", error)]


def test_emitter_off_and_no_listeners():
    emitter = ErrorEmitter()
    calls = []
    emitter.on(PERMISSION_ERROR, calls.append)
    emitter.off(PERMISSION_ERROR, calls.append)
    assert emitter.listener_count(PERMISSION_ERROR) == 0

    emitter.emit(PERMISSION_ERROR, denial())
    assert calls == []


def test_listener_raises_in_development(development_settings):
    emitter = ErrorEmitter()
    PermissionErrorListener(emitter, development_settings).mount()

    error = denial()
    with pytest.raises(PermissionDeniedError) as exc_info:
        emitter.emit(PERMISSION_ERROR, error)
    assert exc_info.value is error


def test_listener_toasts_in_production(production_settings):
    emitter = ErrorEmitter()
    PermissionErrorListener(emitter, production_settings).mount()

    with toast_scope() as sink:
        emitter.emit(PERMISSION_ERROR, denial())

    toasts = sink.drain()
    assert len(toasts) == 1
    assert toasts[0].title == "Permission Denied"
    assert toasts[0].variant == "destructive"
    assert "users/bob" not in toasts[0].description


def test_listener_mounts_once(production_settings):
    emitter = ErrorEmitter()
    listener = PermissionErrorListener(emitter, production_settings)
    listener.mount()
    listener.mount()
    assert emitter.listener_count(PERMISSION_ERROR) == 1

    listener.unmount()
    assert not listener.mounted
    assert emitter.listener_count(PERMISSION_ERROR) == 0


def test_toast_without_scope_is_dropped():
    toast(Toast(title="Saved", description="Nothing listens"))


def test_toast_sink_callback():
    pushed = []
    with toast_scope() as outer:
        with toast_scope(ToastSink(on_push=pushed.append)) as inner:
            toast(Toast(title="Inner", description="x"))
        toast(Toast(title="Outer", description="y"))

    assert [t.title for t in pushed] == ["Inner"]
    assert len(inner) == 1
    assert [t.title for t in outer.drain()] == ["Outer"]


def test_empty_sink_is_the_one_bound():
    sink = ToastSink()
    with toast_scope(sink) as bound:
        toast(Toast(title="Saved", description="x"))

    assert bound is sink
    assert [t.title for t in sink.drain()] == ["Saved"]
