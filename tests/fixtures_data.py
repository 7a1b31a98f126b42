"""Conjunto de dados reutilizável para cenários de teste backend."""

OWNER_ID = "0f6c3a52-3f7e-4a53-9d53-3f0d4f1b2a10"
OTHER_OWNER_ID = "7b9d2c11-5e4f-4c2a-8a61-2b7e9c0d4e21"
ADMIN_ID = "c2a1e7d4-9b3f-4f0e-a6d2-71e5b8c93f04"

REGISTER_PAYLOAD = {
    "email": "Jane.Doe@Example.com",
    "password": "Str0ngPass",
    "firstName": "Jane",
    "lastName": "Doe",
    "phone": "(555) 123-4567",
    "role": "business_owner",
}

BUSINESS_PAYLOAD = {
    "name": "Corner Bakery",
    "description": "Fresh bread every morning",
    "location": {
        "address": "123  main st",
        "city": "portland",
        "state": "or",
        "zipCode": "97201",
        "coordinates": {"lat": 45.5152, "lng": -122.6784},
    },
    "categories": ["restaurants"],
    "hours": {
        "monday": {"open": "07:00", "close": "15:00"},
        "sunday": {"closed": True},
    },
    "contact": {"phone": "555.123.4567", "email": "Hello@CornerBakery.com", "website": "CornerBakery.com/"},
}

# ~15 milhas ao sul de Portland
NEARBY_LOCATION = {
    "address": "500 Oak Ave",
    "city": "Oregon City",
    "state": "OR",
    "zipCode": "97045",
    "coordinates": {"lat": 45.3573, "lng": -122.6068},
}

# Seattle, fora de um raio de 25 milhas
FAR_LOCATION = {
    "address": "1 Pike Pl",
    "city": "Seattle",
    "state": "WA",
    "zipCode": "98101",
    "coordinates": {"lat": 47.6097, "lng": -122.3422},
}

MEDIA_UPLOAD_PAYLOAD = {
    "filename": "storefront.jpg",
    "mimetype": "image/jpeg",
    "fileSize": 2 * 1024 * 1024,
    "type": "photo",
    "description": "Front of the shop",
}
