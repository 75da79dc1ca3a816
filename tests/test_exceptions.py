"""Tests for RunError normalization."""

from buildgate.exceptions import ErrorKind, RunError


def test_wrap_keeps_run_error():
    e = RunError(ErrorKind.synchronization, 'boom', 'partial')
    assert RunError.wrap(e) is e


def test_wrap_plain_exception():
    e = RunError.wrap(ValueError('bad value'), output='captured')
    assert e.kind == ErrorKind.unexpected
    assert e.message == 'bad value'
    assert e.output == 'captured'


def test_wrap_exception_without_message():
    e = RunError.wrap(KeyError())
    assert e.message == 'KeyError'
    assert e.output == ''


def test_combine_concatenates_in_order():
    first = RunError(ErrorKind.synchronization, 'M1', 'O1')
    second = RunError(ErrorKind.synchronization, 'M2', 'O2')
    combined = RunError.combine(first, second)
    assert combined.message == 'M1. M2'
    assert combined.output == 'O1\nO2'
    assert combined.kind == ErrorKind.synchronization


def test_text():
    assert RunError(ErrorKind.unexpected, 'msg').text == 'msg'
    assert RunError(ErrorKind.unexpected, 'msg', 'out').text == 'msg\nout'
    assert str(RunError(ErrorKind.unexpected, 'msg', 'out')) == 'msg'
