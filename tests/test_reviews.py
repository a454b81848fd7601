from helpers import auth_headers, make_user

COMMENT = "Great fabric, true to size."


def post_review(client, headers, product, rating=4, comment=COMMENT):
    return client.post(
        f"/products/{product.id}/reviews",
        json={"rating": rating, "comment": comment},
        headers=headers,
    )


def test_create_review_updates_product_rating(client, session, user_headers, product):
    res = post_review(client, user_headers, product, rating=4)

    assert res.status_code == 201
    assert res.json()["review"]["user_name"] == "Jane Buyer"
    session.refresh(product)
    assert product.average_rating == 4.0
    assert product.review_count == 1


def test_average_is_rounded_to_one_decimal(client, session, user_headers, product):
    post_review(client, user_headers, product, rating=5)
    for i, rating in enumerate((4, 4)):
        reviewer = make_user(session, email=f"reviewer{i}@example.com")
        post_review(client, auth_headers(reviewer), product, rating=rating)

    session.refresh(product)
    assert product.average_rating == 4.3
    assert product.review_count == 3


def test_one_review_per_product(client, user_headers, product):
    post_review(client, user_headers, product)

    res = post_review(client, user_headers, product, rating=2)

    assert res.status_code == 400


def test_review_validation(client, user_headers, product):
    assert post_review(client, user_headers, product, rating=6).status_code == 422
    assert post_review(client, user_headers, product, comment="meh").status_code == 422


def test_review_for_missing_product(client, user_headers):
    res = client.post("/products/999/reviews", json={"rating": 5, "comment": COMMENT}, headers=user_headers)
    assert res.status_code == 404


def test_list_product_reviews(client, user_headers, product):
    post_review(client, user_headers, product)

    res = client.get(f"/products/{product.id}/reviews")

    assert res.status_code == 200
    assert res.json()["count"] == 1
    assert res.json()["reviews"][0]["comment"] == COMMENT


def test_my_reviews(client, user_headers, product, other_product):
    post_review(client, user_headers, product)
    post_review(client, user_headers, other_product)

    res = client.get("/reviews/user", headers=user_headers)

    assert res.json()["count"] == 2


def test_update_review_recomputes_rating(client, session, user_headers, product):
    review_id = post_review(client, user_headers, product, rating=2).json()["review"]["id"]

    res = client.put(f"/reviews/{review_id}", json={"rating": 5}, headers=user_headers)

    assert res.status_code == 200
    assert res.json()["review"]["rating"] == 5
    assert res.json()["review"]["updated_at"] is not None
    session.refresh(product)
    assert product.average_rating == 5.0


def test_only_author_can_modify(client, session, user_headers, product):
    review_id = post_review(client, user_headers, product).json()["review"]["id"]
    stranger = auth_headers(make_user(session, email="stranger@example.com"))

    assert client.put(f"/reviews/{review_id}", json={"rating": 1}, headers=stranger).status_code == 403
    assert client.delete(f"/reviews/{review_id}", headers=stranger).status_code == 403


def test_delete_review_resets_rating(client, session, user_headers, product):
    review_id = post_review(client, user_headers, product).json()["review"]["id"]

    res = client.delete(f"/reviews/{review_id}", headers=user_headers)

    assert res.status_code == 200
    session.refresh(product)
    assert product.average_rating == 0.0
    assert product.review_count == 0
