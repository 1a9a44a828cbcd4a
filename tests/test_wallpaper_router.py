"""월페이퍼 JSON API (upload, analyze, list, get) 테스트."""

from core.exceptions import AnalysisBlocked, ConfigurationError, HostUploadFailed
from service.pipeline import AnalysisMode


class TestUpload:
    def test_upload_success(self, client, png_data_url):
        """업로드 → 201 + message, id, URL 반환."""
        resp = client.post("/api/wallpapers/upload", json={"image": png_data_url})

        assert resp.status_code == 201
        data = resp.json()
        assert "message" in data
        assert data["id"] >= 1
        assert data["image_url"] == "https://i.ibb.co/full/1.png"
        assert data["thumb_url"] == "https://i.ibb.co/thumb/1.png"

    def test_upload_with_name_and_tags(self, client, png_data_url):
        """name="Sunset", tags="nature, sunset" → tags = ["nature", "sunset"]."""
        resp = client.post(
            "/api/wallpapers/upload",
            json={"image": png_data_url, "name": "Sunset", "tags": "nature, sunset"},
        )
        assert resp.status_code == 201

        listing = client.get("/api/wallpapers/").json()
        assert len(listing) == 1
        assert listing[0]["name"] == "Sunset"
        assert listing[0]["tags"] == ["nature", "sunset"]

    def test_upload_tags_as_list(self, client, png_data_url):
        resp = client.post(
            "/api/wallpapers/upload",
            json={"image": png_data_url, "name": "X", "tags": ["Sky", " sea"]},
        )
        assert resp.json()["tags"] == ["sky", "sea"]

    def test_upload_without_image(self, client, host):
        resp = client.post("/api/wallpapers/upload", json={})

        assert resp.status_code == 400
        assert resp.json()["error_code"] == "INVALID_INPUT"
        assert host.calls == []

    def test_upload_skip_mode_requires_name(self, client, make_pipeline, host, png_data_url):
        client.app.state.pipeline = make_pipeline(AnalysisMode.SKIP)

        resp = client.post("/api/wallpapers/upload", json={"image": png_data_url})

        assert resp.status_code == 400
        assert resp.json()["error_code"] == "INVALID_INPUT"
        assert host.calls == []

    def test_host_rate_limited(self, client, host, png_data_url):
        host.error = HostUploadFailed("이미지 호스트 업로드 실패: rate limited")

        resp = client.post("/api/wallpapers/upload", json={"image": png_data_url})

        assert resp.status_code == 502
        data = resp.json()
        assert data["error_code"] == "IMAGE_HOST_ERROR"
        assert "rate limited" in data["error"]
        assert client.get("/api/wallpapers/").json() == []

    def test_analysis_blocked(self, client, host, vision, png_data_url):
        vision.error = AnalysisBlocked("AI 안전 필터에 의해 차단되었습니다. 사유: SAFETY")

        resp = client.post("/api/wallpapers/upload", json={"image": png_data_url})

        assert resp.status_code == 422
        assert resp.json()["error_code"] == "ANALYSIS_BLOCKED"
        assert "SAFETY" in resp.json()["error"]
        assert len(host.calls) == 1
        assert client.get("/api/wallpapers/").json() == []

    def test_missing_configuration(self, client, host, png_data_url):
        """설정 누락 → 외부 호출 없이 CONFIGURATION_ERROR."""
        client.app.state.pipeline = None
        client.app.state.config_error = ConfigurationError("필수 설정값이 없습니다: IMGBB_API_KEY")

        resp = client.post("/api/wallpapers/upload", json={"image": png_data_url})

        assert resp.status_code == 500
        assert resp.json()["error_code"] == "CONFIGURATION_ERROR"
        assert "IMGBB_API_KEY" in resp.json()["error"]
        assert host.calls == []


class TestAnalyze:
    def test_analyze_returns_name_and_tags(self, client, host, png_data_url):
        resp = client.post("/api/wallpapers/analyze", json={"image": png_data_url})

        assert resp.status_code == 200
        assert resp.json() == {"name": "Neon Mountain Dusk", "tags": ["mountain", "neon", "dusk"]}
        assert host.calls == []
        assert client.get("/api/wallpapers/").json() == []

    def test_analyze_disabled_in_skip_mode(self, client, make_pipeline, png_data_url):
        client.app.state.pipeline = make_pipeline(AnalysisMode.SKIP)

        resp = client.post("/api/wallpapers/analyze", json={"image": png_data_url})

        assert resp.status_code == 400

    def test_analyze_invalid_image(self, client, vision):
        resp = client.post("/api/wallpapers/analyze", json={"image": "data:text/plain;base64,aGk="})

        assert resp.status_code == 400
        assert vision.calls == []


class TestListAndGet:
    def test_list_empty(self, client):
        resp = client.get("/api/wallpapers/")
        assert resp.status_code == 200
        assert resp.json() == []

    def test_list_newest_first(self, client, png_data_url):
        first = client.post("/api/wallpapers/upload", json={"image": png_data_url, "name": "first"}).json()
        second = client.post("/api/wallpapers/upload", json={"image": png_data_url, "name": "second"}).json()

        ids = [w["id"] for w in client.get("/api/wallpapers/").json()]
        assert ids == [second["id"], first["id"]]

    def test_list_by_tag(self, client, png_data_url):
        client.post("/api/wallpapers/upload", json={"image": png_data_url, "name": "a", "tags": "sky"})
        client.post("/api/wallpapers/upload", json={"image": png_data_url, "name": "b", "tags": "sea"})

        names = [w["name"] for w in client.get("/api/wallpapers/", params={"tag": "sea"}).json()]
        assert names == ["b"]

    def test_get_wallpaper(self, client, png_data_url):
        created = client.post("/api/wallpapers/upload", json={"image": png_data_url}).json()

        resp = client.get(f"/api/wallpapers/{created['id']}")
        assert resp.status_code == 200
        assert resp.json()["name"] == created["name"]
        assert "created_at" in resp.json()

    def test_get_not_found(self, client):
        resp = client.get("/api/wallpapers/99999")
        assert resp.status_code == 404
        assert resp.json()["error_code"] == "WALLPAPER_NOT_FOUND"
