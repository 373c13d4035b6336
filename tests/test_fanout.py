from nekopad.domain.models import Document
from nekopad.session.fanout import FanOutQueue


def test_claims_in_order_and_clears_at_end():
    docs = [Document(title=t) for t in "abc"]
    q = FanOutQueue()
    q.load(docs)

    assert q.remaining == 3
    assert q.claim() is docs[0]
    assert q.claim() is docs[1]
    assert q.remaining == 1
    assert q.claim() is docs[2]
    assert q.remaining == 0
    assert not q
    assert q.claim() is None


def test_abandon_returns_unclaimed():
    docs = [Document(title=t) for t in "xyz"]
    q = FanOutQueue()
    q.load(docs)
    q.claim()

    assert q.abandon() == docs[1:]
    assert q.claim() is None
    assert q.abandon() == []


def test_load_replaces_previous_entries():
    q = FanOutQueue()
    q.load([Document(title="old")])
    new = Document(title="new")
    q.load([new])
    assert q.claim() is new


def test_pending_lists_unclaimed_without_consuming():
    docs = [Document(title=t) for t in "pq"]
    q = FanOutQueue()
    q.load(docs)
    q.claim()

    assert q.pending() == docs[1:]
    assert q.remaining == 1
    assert q.claim() is docs[1]
    assert q.pending() == []
