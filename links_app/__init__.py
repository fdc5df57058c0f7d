"""
Link shortener service: owner-scoped link CRUD plus a public redirect path.
"""
