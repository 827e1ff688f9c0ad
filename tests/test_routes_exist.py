def test_routes_endpoint_lists_routes(client):
    r = client.get("/__routes")
    assert r.status_code == 200
    assert isinstance(r.json(), list)
    routes = {item["path"]: item["methods"] for item in r.json()}
    assert "/" in routes
    assert routes["/person"] == ["GET", "POST"]
    assert routes["/person/{person_uuid}"] == ["DELETE", "GET", "POST"]

def test_openapi_contains_person_resource(client):
    r = client.get("/openapi.json")
    assert r.status_code == 200
    paths = r.json().get("paths", {})

    assert set(paths["/person"]) == {"get", "post"}
    assert set(paths["/person/{person_uuid}"]) == {"get", "post", "delete"}
