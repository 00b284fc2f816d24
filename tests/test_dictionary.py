import pytest

from app.db import make_engine, make_session_factory
from app.dictionary import DictionaryService, DictionaryUnavailableError, MissingLettersError
from app.seed import Seeder


@pytest.fixture
def service(session_factory):
    Seeder(session_factory).ingest(["cat", "dog", "aardvark", "Kot", "żółw", "e-mail"], batch_size=2)
    return DictionaryService(session_factory)


def test_word_formable_from_pool(service):
    res = service.validate("cat", "tacocat")
    assert res.valid is True
    assert res.word == "cat"
    assert res.elapsedMs >= 0


def test_word_not_formable_from_pool(service):
    # 'dog' is stored, but the pool has no d or g
    assert service.is_valid("dog", "tacocat") is False


def test_unknown_word_is_invalid(service):
    assert service.is_valid("act", "tacocat") is False


def test_missing_letters_is_a_client_error(service):
    with pytest.raises(MissingLettersError):
        service.validate("cat", "")
    with pytest.raises(MissingLettersError):
        service.is_valid("cat", None)


def test_lookup_is_case_sensitive_but_pool_is_not(service):
    assert service.is_valid("Kot", "TOK") is True
    assert service.is_valid("kot", "tok") is False


def test_presence_only_pool(service):
    # the pool is a set of letters: one 'a' covers every 'a' in the word
    assert service.is_valid("aardvark", "ardvk") is True


def test_diacritics(service):
    assert service.is_valid("żółw", "wółż") is True
    assert service.is_valid("żółw", "zolw") is False


def test_empty_word_never_matches(service):
    assert service.is_valid("", "abc") is False


def test_characters_outside_alphabet(service):
    # "-" sets no bit, but the stored word must still match literally
    assert service.is_valid("e-mail", "email") is True
    assert service.is_valid("email", "e-mail") is False
    assert service.is_valid("e-mail", "mail") is False


def test_count(service):
    assert service.count() == 6


def test_store_failure_is_not_a_negative_result():
    engine = make_engine("sqlite://")  # no schema
    broken = DictionaryService(make_session_factory(engine))
    with pytest.raises(DictionaryUnavailableError):
        broken.is_valid("cat", "tacocat")
    with pytest.raises(DictionaryUnavailableError):
        broken.count()
    engine.dispose()
