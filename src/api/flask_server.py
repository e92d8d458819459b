"""
Flask API server for the Family Schedule Assistant
"""
import logging
import signal
import sys
import time
from datetime import date, datetime

from flask import Flask, jsonify, render_template, request
from flask_cors import CORS

from config.settings import Config
from src.ai_agent.llm_client import LLMError
from src.bot.telegram_bot import FamilyBot
from src.calendar.view_renderer import VIEW_MODES, CalendarState
from src.scheduler.family_scheduler import FamilyScheduler
from src.storage.family_store import StoreError
from utils.logger import FamilyScheduleLogger
from utils.validators import ValidationError

logger = logging.getLogger(__name__)


def _parse_int(value, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def calendar_state_from_args(args) -> CalendarState:
    """Build navigation state from ?view=&date=&expand_start=&expand_end="""
    view = args.get("view", "week")
    if view not in VIEW_MODES:
        raise ValidationError(f"Unknown view: {view}")
    try:
        current = date.fromisoformat(args["date"]) if args.get("date") else None
    except ValueError:
        raise ValidationError(f"Invalid date: {args.get('date')}")
    return CalendarState(
        view=view,
        current_date=current,
        expand_start=_parse_int(args.get("expand_start")),
        expand_end=_parse_int(args.get("expand_end")),
    )


def selected_people_from_args(args):
    """None when no filter is given, otherwise the comma-separated set"""
    if "people" not in args:
        return None
    return {p.strip() for p in args.get("people", "").split(",") if p.strip()}


class FamilyScheduleAPI:
    """
    Flask API server for the family calendar, the Telegram webhook and the
    cron endpoints
    """

    def __init__(self, scheduler: FamilyScheduler = None):
        self.config = Config()
        self.app = Flask(__name__)
        CORS(self.app)  # Enable CORS for cross-origin requests

        self.scheduler = scheduler or FamilyScheduler()
        self.bot = FamilyBot(self.scheduler)

        self._setup_routes()

    def _run(self, route: str, failure_message: str, handler, *args):
        """Call a route handler and map domain errors to JSON responses"""
        start_time = time.time()
        try:
            body, status = handler(*args), 200
            if isinstance(body, tuple):
                body, status = body
        except ValidationError as e:
            body, status = {"error": str(e)}, 400
        except (StoreError, LLMError) as e:
            body, status = {"error": str(e)}, 500
        except Exception as e:
            logger.error(f"❌ {route} failed: {e}")
            body, status = {"error": failure_message}, 500

        FamilyScheduleLogger.log_request_response(
            route, request.get_json(silent=True) or dict(request.args), body, status,
            time.time() - start_time
        )
        return jsonify(body), status

    def _json_body(self):
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}

    def _cron_authorized(self) -> bool:
        secret = self.config.CRON_SECRET
        return not secret or request.headers.get("Authorization") == f"Bearer {secret}"

    def _setup_routes(self):
        """Setup Flask routes"""

        @self.app.route('/health', methods=['GET'])
        def health_check():
            """Health check endpoint"""
            return jsonify({
                "status": "healthy",
                "timestamp": datetime.now().isoformat(),
                "storage": type(self.scheduler.store).__name__,
                "ai_available": self.scheduler.llm_client is not None,
                "telegram_configured": self.scheduler.telegram.configured,
            })

        # Events

        @self.app.route('/api/family/events', methods=['GET'])
        def list_events():
            return self._run("list_events", "Failed to fetch events", lambda: {
                "events": self.scheduler.list_events(request.args.get("start"), request.args.get("end"))
            })

        @self.app.route('/api/family/events', methods=['POST'])
        def create_event():
            return self._run("create_event", "Failed to create event", lambda: {
                "event": self.scheduler.create_event(self._json_body())
            })

        @self.app.route('/api/family/events/<event_id>', methods=['PUT'])
        def update_event(event_id):
            return self._run("update_event", "Failed to update event", lambda: {
                "event": self.scheduler.update_event(event_id, self._json_body())
            })

        @self.app.route('/api/family/events/<event_id>', methods=['DELETE'])
        def delete_event(event_id):
            return self._run("delete_event", "Failed to delete event", lambda: {
                "success": self.scheduler.delete_event(event_id)
            })

        @self.app.route('/api/family/events/<event_id>/move', methods=['POST'])
        def move_event(event_id):
            def handler():
                data = self._json_body()
                if not data.get("date") or data.get("hour") is None:
                    raise ValidationError("Missing required fields")
                try:
                    day, hour = date.fromisoformat(data["date"]), int(data["hour"])
                except (TypeError, ValueError):
                    raise ValidationError("Invalid date or hour")
                if not 0 <= hour <= 23:
                    raise ValidationError("Invalid date or hour")
                row = self.scheduler.move_event(event_id, day, hour)
                if row is None:
                    return {"error": "Event not found"}, 404
                return {"event": row}

            return self._run("move_event", "Failed to update event", handler)

        # Announcements

        @self.app.route('/api/family/announcements', methods=['GET'])
        def list_announcements():
            return self._run("list_announcements", "Failed to fetch announcements", lambda: {
                "announcements": self.scheduler.list_announcements()
            })

        @self.app.route('/api/family/announcements', methods=['POST'])
        def create_announcement():
            return self._run("create_announcement", "Failed to create announcement", lambda: {
                "announcement": self.scheduler.create_announcement(self._json_body())
            })

        @self.app.route('/api/family/announcements/<announcement_id>', methods=['DELETE'])
        def delete_announcement(announcement_id):
            return self._run("delete_announcement", "Failed to delete announcement", lambda: {
                "success": self.scheduler.delete_announcement(announcement_id)
            })

        # AI

        @self.app.route('/api/family/parse-event', methods=['POST'])
        def parse_event():
            return self._run("parse_event", "Failed to parse event", lambda: {
                "parsed": self.scheduler.parse_event(self._json_body().get("text"))
            })

        # Cron

        @self.app.route('/api/family/check-reminders', methods=['GET', 'POST'])
        def check_reminders():
            return self._run("check_reminders", "Failed to check reminders", self.scheduler.check_reminders)

        @self.app.route('/api/family/daily-schedule', methods=['GET', 'POST'])
        def daily_schedule():
            # Supabase pg_net posts without the bearer header
            if request.method == 'GET' and not self.config.DISABLE_CRON_JOBS and not self._cron_authorized():
                return jsonify({"error": "Unauthorized"}), 401
            return self._run("daily_schedule", "Failed to send daily schedule", self.scheduler.send_daily_schedule)

        # Telegram

        @self.app.route('/api/family/telegram-webhook', methods=['POST'])
        def telegram_webhook():
            action = self.bot.handle_update(self._json_body())
            logger.info(f"🤖 Telegram update handled: {action}")
            return jsonify({"ok": True})

        # Calendar

        @self.app.route('/api/family/calendar', methods=['GET'])
        def calendar_view():
            return self._run("calendar", "Failed to fetch events", lambda: self.scheduler.render_calendar(
                calendar_state_from_args(request.args), selected_people_from_args(request.args)
            ))

        @self.app.route('/family-schedule', methods=['GET'])
        def family_schedule_page():
            try:
                state = calendar_state_from_args(request.args)
            except ValidationError as e:
                return jsonify({"error": str(e)}), 400
            view_model = self.scheduler.render_calendar(state, selected_people_from_args(request.args))
            return render_template(
                "family_schedule.html",
                calendar=view_model,
                announcements=self.scheduler.list_announcements(),
                palette=self.config.ANNOUNCEMENT_PALETTE,
                hour_height=self.config.HOUR_HEIGHT_PX,
            )

        @self.app.errorhandler(404)
        def not_found(error):
            return jsonify({"error": "Endpoint not found"}), 404

        @self.app.errorhandler(500)
        def internal_error(error):
            return jsonify({"error": "Internal server error"}), 500

    def _setup_signal_handlers(self):
        """Setup graceful shutdown handlers"""
        def signal_handler(signum, frame):
            logger.info(f"Received signal {signum}, shutting down gracefully...")
            self.shutdown()
            sys.exit(0)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    def run(self, host=None, port=None, debug=False):
        """Run the Flask server"""
        host = host or self.config.API_HOST
        port = port or self.config.API_PORT

        self._setup_signal_handlers()
        logger.info(f"Starting Family Schedule API server on {host}:{port}")

        try:
            self.app.run(
                host=host,
                port=port,
                debug=debug,
                threaded=True,
                use_reloader=False
            )
        except Exception as e:
            logger.error(f"Failed to start server: {e}")
            raise

    def shutdown(self):
        """Graceful shutdown: flush pending notifications"""
        logger.info("Shutting down Family Schedule API server...")
        self.scheduler.shutdown()


def create_app(scheduler: FamilyScheduler = None) -> Flask:
    """Factory function to create Flask app"""
    api = FamilyScheduleAPI(scheduler)
    return api.app
