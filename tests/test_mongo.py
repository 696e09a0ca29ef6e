from app.db.mongo import uses_tls


def test_srv_and_tls_flags_use_ca_bundle():
    assert uses_tls("mongodb+srv://user:pw@cluster0.example.mongodb.net/billing")
    assert uses_tls("mongodb://db.example.com:27017/?tls=true")
    assert uses_tls("mongodb://db.example.com:27017/?tls=True")
    assert uses_tls("mongodb://db.example.com:27017/?ssl=true")
    assert uses_tls("MONGODB+SRV://cluster0.example.mongodb.net")


def test_plain_local_uri_skips_ca_bundle():
    assert not uses_tls("mongodb://localhost:27017")
    assert not uses_tls("mongodb://localhost:27017/?tls=false")
