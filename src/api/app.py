"""Flask API for moment analytics - ingestion and read-only query endpoints."""
import sys
from pathlib import Path

ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(ROOT))

from flask import Flask, request, jsonify

from src.moment_analytics.engine import MomentAnalytics
from src.moment_analytics.schema import GroupBy, parse_timestamp


def _bad_request(message):
    return jsonify({"error": message}), 400


def create_app(analytics=None):
    app = Flask(__name__)
    engine = analytics if analytics is not None else MomentAnalytics()
    app.config["ANALYTICS"] = engine

    @app.route("/ping", methods=["GET"])
    def ping():
        return "pong"

    @app.route("/interactions", methods=["POST"])
    def submit_interaction():
        data = request.get_json(silent=True)
        if not data:
            return _bad_request("Empty request")
        try:
            engine.submit_interaction(data)
        except ValueError as e:
            return _bad_request(str(e))
        return jsonify({"status": "recorded"}), 202

    @app.route("/outcomes", methods=["POST"])
    def submit_outcome():
        data = request.get_json(silent=True)
        if not data:
            return _bad_request("Empty request")
        try:
            engine.submit_outcome(data)
        except ValueError as e:
            return _bad_request(str(e))
        return jsonify({"status": "recorded"}), 202

    @app.route("/moments/<moment_id>/effectiveness", methods=["GET"])
    def effectiveness(moment_id):
        return jsonify(engine.get_effectiveness(moment_id).to_dict())

    @app.route("/moments/compare", methods=["POST"])
    def compare():
        data = request.get_json(silent=True) or {}
        moment_ids = data.get("moment_ids") or []
        return jsonify([c.to_dict() for c in engine.compare_moments(moment_ids)])

    @app.route("/funnels/<funnel_id>/analyze", methods=["POST"])
    def analyze_funnel(funnel_id):
        data = request.get_json(silent=True) or {}
        try:
            start = parse_timestamp(data.get("start"))
            end = parse_timestamp(data.get("end"))
        except ValueError as e:
            return _bad_request(str(e))
        steps = [str(s) for s in data.get("steps") or []]
        return jsonify([s.to_dict() for s in engine.analyze_funnel(funnel_id, steps, start, end)])

    @app.route("/ab-tests", methods=["POST"])
    def setup_ab_test():
        data = request.get_json(silent=True) or {}
        test_id = data.get("test_id")
        moment_a = data.get("moment_a")
        moment_b = data.get("moment_b")
        if not (test_id and moment_a and moment_b):
            return _bad_request("test_id, moment_a and moment_b are required")
        try:
            split = data.get("traffic_split")
            split = None if split is None else float(split)
            planned = int(data.get("planned_sample_size") or 0)
        except (TypeError, ValueError):
            return _bad_request("traffic_split must be a number and planned_sample_size an integer")
        if split is not None and not 0.0 <= split <= 1.0:
            return _bad_request("traffic_split must be between 0 and 1")
        engine.setup_ab_test(str(test_id), str(moment_a), str(moment_b), split, planned)
        return jsonify({"status": "created", "test_id": test_id}), 201

    @app.route("/ab-tests/<test_id>", methods=["GET"])
    def analyze_ab_test(test_id):
        result = engine.analyze_ab_test(test_id)
        if result is None:
            return jsonify({"error": f"A/B test {test_id} not found"}), 404
        return jsonify(result.to_dict())

    @app.route("/users/<user_id>/journey", methods=["GET"])
    def journey(user_id):
        session_id = request.args.get("session_id")
        return jsonify([i.to_dict() for i in engine.get_user_journey(user_id, session_id)])

    @app.route("/users/<user_id>/personalization", methods=["GET"])
    def personalization(user_id):
        return jsonify(engine.get_personalization_effectiveness(user_id).to_dict())

    @app.route("/cohorts", methods=["GET"])
    def cohorts():
        try:
            start = parse_timestamp(request.args.get("start"))
            end = parse_timestamp(request.args.get("end"))
            group_by = GroupBy(request.args.get("group_by", GroupBy.WEEK.value))
        except ValueError as e:
            return _bad_request(str(e))
        return jsonify([c.to_dict() for c in engine.get_cohort_analysis(start, end, group_by)])

    return app


app = create_app()


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000)
