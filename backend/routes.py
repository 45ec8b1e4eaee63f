from flask import Blueprint, current_app, jsonify, request
from pymongo.errors import PyMongoError

from .models import (COMMENT_FIELDS, Favorites, ValidationFailure, favorite_entry,
                     missing_fields, new_comment, new_layout, new_user)


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def create_api(store, credentials):
    api = Blueprint("api", __name__)

    # --- Account Endpoints ----------------------------------------------

    @api.route("/signup", methods=["POST"])
    def signup():
        data = _json_body()
        try:
            password = data.get("password")
            pw_hash = credentials.hash(password) if password else None
            user = new_user(data.get("email"), data.get("username"), pw_hash)
            store.insert_user(user)
            return jsonify({"message": "User signed up successfully!"})
        except ValidationFailure as e:
            current_app.logger.warning("Rejected sign-up: %s", e)
            return jsonify({"message": "Error saving user data"}), 500
        except PyMongoError:
            current_app.logger.exception("Error saving user data")
            return jsonify({"message": "Error saving user data"}), 500

    @api.route("/login", methods=["POST"])
    def login():
        data = _json_body()
        username = data.get("username")
        password = data.get("password")

        if not username or not password:
            return jsonify({"message": "Invalid username or password"}), 400

        try:
            user = store.users.find_one({"username": username})
        except PyMongoError:
            current_app.logger.exception("Error logging in")
            return jsonify({"message": "Server error"}), 500

        if user and credentials.verify(password, user["password"]):
            return jsonify({"message": "Login successful", "username": username})
        return jsonify({"message": "Invalid username or password"}), 400

    @api.route("/logout", methods=["POST"])
    def logout():
        return jsonify({"message": "Logout successful"})

    @api.route("/change-password", methods=["POST"])
    def change_password():
        data = _json_body()
        old_password = data.get("oldpassword")
        new_password = data.get("newpassword")

        try:
            user = store.users.find_one({"username": data.get("username")})
            if not user:
                return jsonify({"message": "User not found"}), 404

            if not old_password or not credentials.verify(old_password, user["password"]):
                return jsonify({"message": "Old password is incorrect"}), 400

            if not new_password:
                raise ValidationFailure("Missing required field(s): newpassword")

            store.users.update_one({"_id": user["_id"]},
                                   {"$set": {"password": credentials.hash(new_password)}})
            return jsonify({"message": "Password changed successfully"})
        except ValidationFailure as e:
            current_app.logger.warning("Rejected password change: %s", e)
            return jsonify({"message": "Server error"}), 500
        except PyMongoError:
            current_app.logger.exception("Error changing password")
            return jsonify({"message": "Server error"}), 500

    # --- Layouts --------------------------------------------------------

    @api.route("/user/layout", methods=["POST"])
    def save_layout():
        data = _json_body()
        try:
            user = store.users.find_one({"username": data.get("username")})
            if not user:
                return jsonify({"message": "User not found"}), 400

            layout = new_layout(user, data.get("layoutName"), data.get("layout"))
            store.layouts.insert_one(layout)
            return jsonify({"message": "Layout saved successfully!", "layout": layout}), 201
        except ValidationFailure as e:
            current_app.logger.warning("Rejected layout: %s", e)
            return jsonify({"message": "Server error"}), 500
        except PyMongoError:
            current_app.logger.exception("Error saving layout")
            return jsonify({"message": "Server error"}), 500

    @api.route("/user/<username>/layouts", methods=["GET"])
    def get_user_layouts(username):
        try:
            layouts = list(store.layouts.find({"username": username}))
        except PyMongoError:
            current_app.logger.exception("Error fetching layouts")
            return jsonify({"message": "Server error"}), 500
        return jsonify(layouts)

    @api.route("/layouts", methods=["GET"])
    def get_layouts():
        try:
            layouts = list(store.layouts.find())
        except PyMongoError:
            current_app.logger.exception("Error fetching layouts")
            return jsonify({"message": "Server error"}), 500
        return jsonify(layouts)

    # --- Favorites ------------------------------------------------------

    @api.route("/user/<username>/favorites", methods=["POST"])
    def update_favorite(username):
        data = _json_body()
        try:
            user = store.users.find_one({"username": username})
            if not user:
                return jsonify({"message": "User not found"}), 404

            favorites = Favorites(user.get("favorites"))
            if data.get("favorited"):
                favorites.add(favorite_entry(data))
            else:
                favorites.discard(data.get("plantId"))

            store.users.update_one({"_id": user["_id"]},
                                   {"$set": {"favorites": favorites.to_list()}})
            return jsonify({"message": "Favorite status updated",
                            "favorites": favorites.to_list()})
        except ValidationFailure as e:
            current_app.logger.warning("Rejected favorite update: %s", e)
            return jsonify({"message": "Internal server error"}), 500
        except PyMongoError:
            current_app.logger.exception("Error updating favorite status")
            return jsonify({"message": "Internal server error"}), 500

    @api.route("/user/<username>/favorites", methods=["GET"])
    def get_favorites(username):
        try:
            user = store.users.find_one({"username": username}, {"favorites": 1})
        except PyMongoError:
            current_app.logger.exception("Error fetching favorites")
            return jsonify({"error": "An error occurred"}), 500

        if not user:
            return jsonify({"error": "User not found"}), 404
        return jsonify({"favorites": user.get("favorites", [])})

    @api.route("/user/<username>/favorites/<plant_id>", methods=["DELETE"])
    def delete_favorite(username, plant_id):
        try:
            user = store.users.find_one({"username": username})
            if not user:
                return jsonify({"message": "User not found"}), 404

            favorites = Favorites(user.get("favorites"))
            favorites.discard(plant_id)
            store.users.update_one({"_id": user["_id"]},
                                   {"$set": {"favorites": favorites.to_list()}})
            return jsonify({"message": "Plant removed from favorites"})
        except PyMongoError:
            current_app.logger.exception("Error removing favorite plant")
            return jsonify({"message": "Internal server error"}), 500

    # --- Catalog data ---------------------------------------------------

    @api.route("/data/<collection_name>", methods=["GET"])
    def get_collection_data(collection_name):
        common_name = request.args.get("commonName")
        query = {"commonName": common_name} if common_name else {}
        try:
            data = list(store.collection(collection_name).find(query))
        except PyMongoError:
            current_app.logger.exception("Error fetching data from collection %s", collection_name)
            return jsonify({"message": f"Error fetching data from collection: {collection_name}"}), 500
        return jsonify(data)

    # --- Comments -------------------------------------------------------

    @api.route("/comments", methods=["POST"])
    def post_comment():
        data = _json_body()
        if missing_fields(data, COMMENT_FIELDS):
            return jsonify({"message": "All fields are required"}), 400

        try:
            comment = new_comment(data["layoutOwner"], data["layoutName"],
                                  data["username"], data["commentText"])
            store.comments.insert_one(comment)
        except PyMongoError:
            current_app.logger.exception("Error saving comment")
            return jsonify({"message": "Error saving comment"}), 500
        return jsonify(comment), 201

    @api.route("/comments", methods=["GET"])
    def get_comments():
        query = {k: request.args[k] for k in ("layoutOwner", "layoutName") if k in request.args}
        try:
            comments = list(store.comments.find(query))
        except PyMongoError:
            current_app.logger.exception("Error fetching comments")
            return jsonify({"message": "Error fetching comments"}), 500
        return jsonify(comments)

    return api
