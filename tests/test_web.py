"""Tests for the FastAPI adapter, driven through TestClient."""

from __future__ import annotations

import shutil
import tempfile
import unittest
from pathlib import Path

from fastapi.testclient import TestClient

from patchkit.config import LibraryConfig
from patchkit.diagram import diagram_to_dict
from patchkit.library import PatchLibrary
from patchkit.patch import patch_to_dict
from patchkit.web.server import create_app
from tests.blink_fixture import (
    make_abc_diagram, make_blink_patch, make_board_diagram, make_r1_d1_patch,
)


class WebTestCase(unittest.TestCase):

    def setUp(self):
        self.root = Path(tempfile.mkdtemp(prefix="patchkit_web_"))
        self.lib = PatchLibrary(LibraryConfig.under(self.root))
        self.client = TestClient(create_app(self.lib))

    def tearDown(self):
        shutil.rmtree(self.root, ignore_errors=True)


class TestPatchRoutes(WebTestCase):

    def test_save_list_get(self):
        r = self.client.post("/api/patches", json=patch_to_dict(make_blink_patch()))
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertEqual(body["patch"]["id"], "patch_LED_Blink_Circuit")
        self.assertIn("Warning: Circuit has 3 isolated islands", body["warnings"])

        listing = self.client.get("/api/patches").json()
        self.assertEqual([e["id"] for e in listing], ["patch_LED_Blink_Circuit"])

        r = self.client.get("/api/patches/patch_LED_Blink_Circuit")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["metadata"]["name"], "LED Blink Circuit")

    def test_search(self):
        self.client.post("/api/patches", json=patch_to_dict(make_blink_patch()))
        self.assertEqual(len(self.client.get("/api/patches", params={"q": "indicator"}).json()), 1)
        self.assertEqual(self.client.get("/api/patches", params={"q": "zzz"}).json(), [])

    def test_save_rejects_errors(self):
        r = self.client.post("/api/patches", json=patch_to_dict(make_r1_d1_patch()))
        self.assertEqual(r.status_code, 422)
        self.assertEqual(len(r.json()["errors"]), 2)
        self.assertEqual(self.client.get("/api/patches").json(), [])

    def test_get_unknown(self):
        self.assertEqual(self.client.get("/api/patches/patch_nope").status_code, 404)

    def test_delete(self):
        self.client.post("/api/patches", json=patch_to_dict(make_blink_patch()))
        r = self.client.delete("/api/patches/patch_LED_Blink_Circuit")
        self.assertEqual(r.json(), {"deleted": True})
        r = self.client.delete("/api/patches/patch_LED_Blink_Circuit")
        self.assertEqual(r.json(), {"deleted": False})

    def test_import(self):
        r = self.client.post("/api/patches/import", json=patch_to_dict(make_blink_patch()))
        self.assertEqual(r.status_code, 200)
        self.assertRegex(r.json()["patch"]["id"], r"^patch_\d+$")

    def test_connectivity(self):
        self.client.post("/api/patches", json=patch_to_dict(make_blink_patch()))
        body = self.client.get("/api/patches/patch_LED_Blink_Circuit/connectivity").json()
        self.assertEqual(body["island_count"], 3)
        self.assertTrue(body["is_fully_connected"])
        self.assertIn("FULLY CONNECTED", body["text"])


class TestVersionRoutes(WebTestCase):

    def setUp(self):
        super().setUp()
        patch = make_blink_patch()
        self.client.post("/api/patches", json=patch_to_dict(patch))
        patch.metadata.description = "second"
        self.client.post("/api/patches", json=patch_to_dict(patch))

    def test_list_and_restore(self):
        versions = self.client.get("/api/patches/patch_LED_Blink_Circuit/versions").json()["versions"]
        self.assertEqual(len(versions), 1)

        r = self.client.post("/api/patches/patch_LED_Blink_Circuit/restore",
                             json={"backup": versions[0]})
        self.assertEqual(r.json(), {"restored": True})
        body = self.client.get("/api/patches/patch_LED_Blink_Circuit").json()
        self.assertEqual(body["metadata"]["description"], "Battery, resistor and LED")

    def test_restore_unknown_backup(self):
        r = self.client.post("/api/patches/patch_LED_Blink_Circuit/restore",
                             json={"backup": "nope"})
        self.assertEqual(r.status_code, 404)

    def test_versions_unknown_patch(self):
        self.assertEqual(self.client.get("/api/patches/patch_nope/versions").status_code, 404)

    def test_cleanup(self):
        r = self.client.post("/api/patches/patch_LED_Blink_Circuit/cleanup", params={"keep": 0})
        self.assertEqual(r.json(), {"removed": 1})
        r = self.client.post("/api/patches/patch_LED_Blink_Circuit/cleanup", params={"keep": -1})
        self.assertEqual(r.status_code, 400)


class TestExtractRoute(WebTestCase):

    def test_extract(self):
        r = self.client.post("/api/extract", json={
            "diagram": diagram_to_dict(make_abc_diagram()),
            "selected_ids": ["a", "b"],
            "name": "AB Pair",
        })
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertEqual(len(body["patch"]["nets"]), 1)
        self.assertEqual(body["patch"]["interface_pins"][0]["id"], "B.2")
        self.assertTrue(body["check"]["valid"])
        self.assertNotIn("entry", body)

    def test_extract_and_save(self):
        r = self.client.post("/api/extract", json={
            "diagram": diagram_to_dict(make_board_diagram()),
            "selected_ids": ["u1", "r1", "c1"],
            "name": "MCU Core",
            "save": True,
        })
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["entry"]["id"], "patch_MCU_Core")
        self.assertIsNotNone(self.lib.get_entry("patch_MCU_Core"))

    def test_extract_empty_selection(self):
        r = self.client.post("/api/extract", json={
            "diagram": diagram_to_dict(make_abc_diagram()),
            "selected_ids": [],
            "name": "Nothing",
        })
        self.assertEqual(r.status_code, 400)


class TestInsertRoute(WebTestCase):

    def test_insert(self):
        self.client.post("/api/patches", json=patch_to_dict(make_blink_patch()))
        r = self.client.post("/api/patches/patch_LED_Blink_Circuit/insert", json={
            "diagram": diagram_to_dict(make_abc_diagram()),
            "offset": [10, 20],
        })
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertEqual(len(body["diagram"]["components"]), 6)
        self.assertEqual(len(body["added_connections"]), 3)
        token = body["token"]
        battery = next(c for c in body["diagram"]["components"]
                       if c["id"] == f"battery1-{token}")
        self.assertEqual((battery["x"], battery["y"]), (10, 20))

    def test_insert_unknown(self):
        r = self.client.post("/api/patches/patch_nope/insert", json={"diagram": {}})
        self.assertEqual(r.status_code, 404)


if __name__ == "__main__":
    unittest.main()
