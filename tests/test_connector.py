"""End-to-end tests for the fetch façade with a fake HTTP session."""

from __future__ import annotations

import io
import zipfile

import pytest

from visionfetch.config import FetchConfig
from visionfetch.connector import TradesConnector
from visionfetch.downloader import Downloader
from visionfetch.errors import HTTPStatusError, NoCsvMembersError
from visionfetch.models import FetchResult

HEADER = "TradeId,Price,Quantity,QuoteQuantity,Timestamp,IsBuyerMaker,IsBestMatch\n"
MOCK_TRADES = (
    "123456789,0.001234,100.0,0.1234,1735430400000,true,true\n"
    "123456790,0.001235,200.0,0.2470,1735430401000,false,true\n"
    "123456791,0.001236,150.0,0.1854,1735430402000,true,false\n"
)


def _build_archive(members: dict[str, str]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, content in members.items():
            archive.writestr(name, content)
    return buffer.getvalue()


class FakeResponse:
    def __init__(self, status_code=200, body=b""):
        self.status_code = status_code
        self.headers = {"Content-Length": str(len(body))}
        self.body = body

    def iter_content(self, chunk_size=1):
        for start in range(0, len(self.body), chunk_size):
            yield self.body[start : start + chunk_size]

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


class FakeSession:
    def __init__(self, response):
        self.response = response
        self.calls = []
        self.closed = False

    def get(self, url, **kwargs):
        self.calls.append(url)
        return self.response

    def close(self):
        self.closed = True


def _connector(response: FakeResponse) -> tuple[TradesConnector, FakeSession]:
    session = FakeSession(response)
    return TradesConnector(Downloader(session, chunk_size=256)), session


def test_fetch_returns_result_for_normalized_date():
    archive = _build_archive({"AIUSDT-trades-2025-01-05.csv": HEADER + MOCK_TRADES})
    connector, session = _connector(FakeResponse(body=archive))

    result = connector.fetch("AIUSDT", "2025", "1", "5")

    assert isinstance(result, FetchResult)
    assert result.symbol == "AIUSDT"
    assert result.date == "2025-01-05"
    assert result.trade_count == 3 == len(result.trades)
    assert [t.id for t in result.trades] == [123456789, 123456790, 123456791]
    assert result.trades[1].is_buyer_maker is False
    assert session.calls == [
        "https://data.binance.vision/data/spot/daily/trades/AIUSDT/AIUSDT-trades-2025-01-05.zip"
    ]


def test_fetch_merges_multiple_members():
    rows = [
        "".join(f"{base + i},1.0,1.0,1.0,1700000000000,t,f\n" for i in range(count))
        for base, count in ((0, 2), (100, 3), (200, 5))
    ]
    archive = _build_archive({f"part-{n}.csv": body for n, body in enumerate(rows)})
    connector, _ = _connector(FakeResponse(body=archive))

    result = connector.fetch("BTCUSDT", 2024, 3, 9)

    assert result.trade_count == 10
    assert result.trade_count == len(result.trades)
    assert result.date == "2024-03-09"


def test_http_failure_is_tagged_and_not_retried():
    connector, session = _connector(FakeResponse(status_code=404))

    with pytest.raises(HTTPStatusError) as excinfo:
        connector.fetch("BTCUSDT", 2024, 1, 5)

    assert excinfo.value.symbol == "BTCUSDT"
    assert excinfo.value.date == "2024-01-05"
    assert str(excinfo.value).startswith("BTCUSDT 2024-01-05:")
    assert len(session.calls) == 1


def test_archive_without_csv_is_tagged():
    connector, _ = _connector(FakeResponse(body=_build_archive({"README": "empty"})))

    with pytest.raises(NoCsvMembersError) as excinfo:
        connector.fetch("ETHUSDT", 2024, 12, 31)

    assert excinfo.value.date == "2024-12-31"


def test_connector_closes_session():
    connector, session = _connector(FakeResponse(body=b""))

    with connector:
        pass

    assert session.closed


def test_from_config_passes_settings_through():
    session = FakeSession(FakeResponse())
    config = FetchConfig(base_url="http://mirror.local", max_response_bytes=1024, max_workers=2)

    connector = TradesConnector.from_config(config, session=session)

    assert connector.downloader.session is session
    assert connector.downloader.base_url == "http://mirror.local"
    assert connector.downloader.max_response_bytes == 1024
    assert connector.max_workers == 2


def test_fetch_trades_uses_resolved_config(tmp_path, monkeypatch):
    import visionfetch
    import visionfetch.config

    archive = _build_archive({"AIUSDT-trades-2025-01-05.csv": HEADER + MOCK_TRADES})
    session = FakeSession(FakeResponse(body=archive))
    monkeypatch.setattr(visionfetch.config, "CONFIG_PATH", tmp_path / "missing.toml")
    monkeypatch.setenv("VISIONFETCH_BASE_URL", "http://mirror.local")
    monkeypatch.setattr(
        TradesConnector,
        "from_config",
        classmethod(lambda cls, config=None, **kwargs: cls(Downloader.from_config(config, session))),
    )

    result = visionfetch.fetch_trades("AIUSDT", 2025, 1, 5)

    assert result.trade_count == 3
    assert session.calls == [
        "http://mirror.local/data/spot/daily/trades/AIUSDT/AIUSDT-trades-2025-01-05.zip"
    ]
    assert session.closed
