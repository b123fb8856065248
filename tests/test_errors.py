import pytest

from larvaos.errors import MAX_ERRNO, Errno, KernelError, KernelPanic, panic


@pytest.mark.parametrize(
    "number, expected",
    [
        (5, Errno.EIO),
        (12, Errno.ENOMEM),
        (22, Errno.EINVAL),
        (30, Errno.EROFS),
    ],
)
def test_errno_values_match_the_kernel_table(number, expected):
    assert KernelError(number).errno is expected


def test_errno_values_fit_below_the_error_limit():
    for member in Errno:
        error = KernelError(int(member))
        assert error.errno is member
        assert 0 < error.errno < MAX_ERRNO


def test_kernel_error_coerces_plain_numbers():
    error = KernelError(5, "disk failure")
    assert error.errno is Errno.EIO
    assert error.message == "disk failure"


def test_kernel_error_text_names_the_error_and_message():
    error = KernelError(Errno.EINVAL, "bad path")
    assert "EINVAL" in str(error)
    assert "bad path" in str(error)


def test_kernel_error_without_message_uses_the_name():
    assert str(KernelError(Errno.ENOMEM)) == "ENOMEM"


def test_kernel_error_rejects_unknown_numbers():
    with pytest.raises(ValueError):
        KernelError(9999, "nope")


def test_kernel_error_can_be_caught_as_exception():
    error = KernelError(Errno.ESRCH, "slot in use")
    with pytest.raises(KernelError) as info:
        raise error
    assert info.value is error
    assert info.value.errno is Errno.ESRCH
    assert info.value.message == "slot in use"


def test_panic_raises_with_prefixed_message():
    with pytest.raises(KernelPanic) as info:
        panic("boom")
    assert info.value.message == "boom"
    assert str(info.value) == "PANIC: boom"