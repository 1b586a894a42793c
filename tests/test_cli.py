import json

import pytest

from shelterroute.cli import _format_snapshot, build_parser, main
from shelterroute.config.settings import get_settings
from shelterroute.core.geo import GeoPoint
from shelterroute.live.watcher import WatchSnapshot


def _default_catalog_or_skip():
    if get_settings().catalog.path:
        pytest.skip("catalog.path overridden in this environment")


def test_cli_nearest_prints_name_and_distance(capsys):
    _default_catalog_or_skip()
    assert main(["nearest", "--lat", "12.9730", "--lon", "77.5940"]) == 0
    out = capsys.readouterr().out.strip()
    assert out.startswith("City Hall Shelter: ")
    assert out.endswith(" m")


def test_cli_nearest_json_uses_geojson_feature(capsys):
    _default_catalog_or_skip()
    assert main(["nearest", "--lat", "12.9730", "--lon", "77.5940", "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["shelter"]["geometry"]["coordinates"] == [77.5933, 12.9721]
    assert payload["distance_m"] > 0


def test_cli_watch_defaults():
    args = build_parser().parse_args(["watch"])
    assert args.file == "-"
    assert args.throttle is None
    assert args.api_base is None


def test_format_snapshot_lists_status_and_position():
    snap = WatchSnapshot(position=GeoPoint(lat=12.973, lon=77.594), nearest=None, route=None, status="watching")
    assert _format_snapshot(snap) == "[watching] pos=12.97300,77.59400"
