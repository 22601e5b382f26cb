"""
LED controller HTTP API.

    GET  /api/led/status
    GET  /api/led/info
    GET  /api/led/zones
    POST /api/led/command              {"zone":1,"color":"red","action":"blink",...}
    POST /api/led/test
    POST /api/led/off
    POST /api/led/highlight/<location>?color=blue

The inventory service calls highlight after it moves stock; the front end uses
the rest for diagnostics.
"""

import os
import argparse
import logging

from flask import Flask, jsonify, request

from .config import LinkConfig, configure_logging
from .discovery import available_ports
from .link import DEFAULT_HIGHLIGHT_COLOR, IndicatorLink
from .protocol import command_from_dict
from .zones import ZoneMap

log = logging.getLogger("warehouse_lights.app")


def create_app(link: IndicatorLink) -> Flask:
    """Build the Flask app around an already constructed link."""
    app = Flask(__name__)
    app.config["INDICATOR_LINK"] = link

    # ----------------------------
    # Status / diagnostics
    # ----------------------------
    @app.route("/api/led/status", methods=["GET"])
    def led_status():
        return jsonify(link.status())

    @app.route("/api/led/info", methods=["GET"])
    def led_info():
        connected = link.is_connected()
        if link.is_mock:
            message = "Running in mock mode"
        elif connected:
            message = "Hardware connected"
        else:
            message = "Hardware not connected"
        return jsonify({
            "isConnected": connected,
            "mode": "mock" if link.is_mock else "hardware",
            "environment": os.getenv("WAREHOUSE_ENV", "production"),
            "availablePorts": available_ports(),
            "message": message,
        })

    @app.route("/api/led/zones", methods=["GET"])
    def led_zones():
        return jsonify({"zones": dict(link.zones)})

    # ----------------------------
    # Commands
    # ----------------------------
    @app.route("/api/led/command", methods=["POST"])
    def led_command():
        payload = request.get_json(force=True, silent=True)
        if payload is None:
            return jsonify({"error": "expected a JSON command object"}), 400
        try:
            command = command_from_dict(payload)
        except ValueError as e:
            return jsonify({"error": str(e)}), 400

        if not link.send_command(command):
            return jsonify({"error": "Failed to send command"}), 500
        return jsonify({"message": "Command sent successfully"})

    @app.route("/api/led/test", methods=["POST"])
    def led_test():
        if not link.test_connection():
            return jsonify({"error": "LED controller not responding"}), 500
        return jsonify({"message": "LED test successful"})

    @app.route("/api/led/off", methods=["POST"])
    def led_off():
        if not link.turn_off_all():
            return jsonify({"error": "Failed to turn off LEDs"}), 500
        return jsonify({"message": "All LEDs turned off"})

    @app.route("/api/led/highlight/<location>", methods=["POST"])
    def led_highlight(location):
        color = request.args.get("color", DEFAULT_HIGHLIGHT_COLOR)
        if not link.highlight_location(location, color):
            return jsonify({"error": "Failed to highlight location"}), 500
        return jsonify({"message": f"Location {location} highlighted"})

    return app


def main():
    ap = argparse.ArgumentParser(description="Warehouse LED controller API")
    ap.add_argument("--host", default=os.getenv("LED_API_HOST", "127.0.0.1"), help="Bind address")
    ap.add_argument("--port", type=int, default=int(os.getenv("LED_API_PORT", "5000")), help="HTTP port")
    ap.add_argument("--serial-port", default=None, help="Serial port (auto-detect if empty)")
    ap.add_argument("--wireless", action="store_true", default=None, help="Talk to the Pico W over TCP")
    ap.add_argument("--force-hardware", action="store_true", default=None, help="Use real LEDs in development")
    ap.add_argument("--debug", action="store_true", help="Flask debug mode")
    args = ap.parse_args()

    configure_logging()
    config = LinkConfig.from_env().with_overrides(
        serial_port=args.serial_port,
        wireless=args.wireless,
        force_hardware=args.force_hardware,
    )

    link = IndicatorLink(config, ZoneMap.from_env())
    app = create_app(link)
    try:
        # reloader would construct a second link and fight over the serial port
        app.run(host=args.host, port=args.port, debug=args.debug, use_reloader=False, threaded=True)
    finally:
        log.info("Shutting down…")
        link.close()


if __name__ == "__main__":
    main()
