from rolegate.infrastructure.auth import hash_password, needs_rehash, verify_password


def test_hash_is_argon2id():
    hashed = hash_password("Sup3r$ecretPass")
    assert hashed.startswith("$argon2id$")
    assert hashed != hash_password("Sup3r$ecretPass")


def test_verify():
    hashed = hash_password("Sup3r$ecretPass")
    assert verify_password("Sup3r$ecretPass", hashed) is True
    assert verify_password("wrong", hashed) is False


def test_malformed_hash_is_mismatch():
    assert verify_password("anything", "not-a-hash") is False


def test_fresh_hash_needs_no_rehash():
    assert needs_rehash(hash_password("Sup3r$ecretPass")) is False
