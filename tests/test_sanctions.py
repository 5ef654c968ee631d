import re
from concurrent.futures import ThreadPoolExecutor

import pytest

from app.loan_engine.models import SanctionRecord, SanctionStoreError
from app.loan_engine.tools.sanctions import InMemorySanctionStore, generate_sanction_id


def make_record(**overrides):
    fields = dict(
        full_name="Abheek Sehgal",
        mobile="9876543210",
        loan_amount=300000,
        tenure_months=36,
        emi=9750.3,
        interest_rate=10.5,
        credit_score=740,
    )
    fields.update(overrides)
    return SanctionRecord(**fields)


def test_sanction_id_format():
    sanction_id = generate_sanction_id()
    assert re.fullmatch(r"SL\d{13}[0-9A-F]{9}", sanction_id)


def test_sanction_ids_are_unique():
    ids = {generate_sanction_id() for _ in range(500)}
    assert len(ids) == 500


def test_put_then_get(sanction_store):
    record = make_record()
    sanction_store.put("SL1", record)
    assert sanction_store.get("SL1") == record
    assert sanction_store.get("SL2") is None


def test_each_key_is_written_once(sanction_store):
    sanction_store.put("SL1", make_record())
    with pytest.raises(SanctionStoreError):
        sanction_store.put("SL1", make_record(loan_amount=1))
    assert sanction_store.get("SL1").loan_amount == 300000


def test_records_are_immutable():
    record = make_record()
    with pytest.raises(Exception):
        record.loan_amount = 1


def test_concurrent_writes_to_distinct_keys():
    store = InMemorySanctionStore()
    keys = [f"SL{i}" for i in range(200)]
    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(lambda key: store.put(key, make_record()), keys))
    assert len(store) == 200
