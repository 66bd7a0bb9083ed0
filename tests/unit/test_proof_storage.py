import pytest

from app.domain.errors import ValidationError, NotFoundError, ConflictError


def test_save_open_delete(proof_storage):
    proof_storage.save("order-1-1.png", b"data")
    assert proof_storage.open("order-1-1.png").read_bytes() == b"data"

    proof_storage.delete("order-1-1.png")
    with pytest.raises(NotFoundError):
        proof_storage.open("order-1-1.png")


@pytest.mark.parametrize("key", ["../etc/passwd", "a/b.png", ".hidden", ""])
def test_unsafe_keys_rejected(proof_storage, key):
    with pytest.raises(ValidationError):
        proof_storage.open(key)


def test_save_never_overwrites_existing_proof(proof_storage):
    proof_storage.save("order-1-1.png", b"first")

    with pytest.raises(ConflictError):
        proof_storage.save("order-1-1.png", b"second")

    assert proof_storage.open("order-1-1.png").read_bytes() == b"first"
