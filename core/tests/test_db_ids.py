from __future__ import annotations

import re

from bimigrate_core.db.ids import new_external_id


def test_new_external_id_shape() -> None:
    assert re.fullmatch(r"ext_\d+_[0-9a-f]{8}_report_1", new_external_id("report"))
    assert new_external_id("dashboard", index=3).endswith("_dashboard_3")


def test_new_external_id_is_unique() -> None:
    ids = {new_external_id("report") for _ in range(500)}
    assert len(ids) == 500
