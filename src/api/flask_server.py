"""
Flask API server for the Tab AI Scheduler
"""
import logging
import signal
import sys
import time
from datetime import datetime

from flask import Flask, jsonify, render_template_string, request
from flask_cors import CORS

from config.settings import Config
from src.ai_agent.llm_client import create_llm_client
from src.auth.credential_store import CredentialStore, InMemoryCredentialStore
from src.auth.oauth_flow import AuthorizationFlow
from src.scheduler.errors import AuthExchangeError, ConfigError, SchedulerError, ValidationError
from src.scheduler.smart_scheduler import SmartScheduler
from utils.validators import RequestValidator

logger = logging.getLogger(__name__)

OAUTH_CALLBACK_PAGE = """<!DOCTYPE html>
<html>
<head>
  <title>{{ title }}</title>
  <script>
    if (window.opener) {
      window.opener.postMessage({{ message|tojson }}, '*');
    }
    {% if message.success %}window.close();{% endif %}
  </script>
</head>
<body>
  <p>{{ text }}</p>
</body>
</html>
"""


class SmartCalendarAPI:
    """
    Flask API server exposing OAuth, scheduling and question answering
    """

    def __init__(self, config: Config = None, credential_store: CredentialStore = None,
                 scheduler: SmartScheduler = None, auth_flow: AuthorizationFlow = None,
                 llm_client=None):
        self.config = config or Config()
        self.app = Flask(__name__)
        CORS(self.app, origins="*", methods=self.config.CORS_METHODS,
             allow_headers=self.config.CORS_HEADERS)

        self.credential_store = credential_store or InMemoryCredentialStore()
        self.auth_flow = auth_flow or AuthorizationFlow(self.config)
        self.llm_client = llm_client or create_llm_client(self.config)
        self.scheduler = scheduler or SmartScheduler.from_config(
            self.credential_store, self.config, llm_client=self.llm_client
        )
        self.start_time = time.time()

        self._setup_routes()

    @staticmethod
    def _json_body() -> dict:
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}

    def _callback_page(self, status_code: int, success: bool, user_id: str = None, error: str = None):
        message = {"type": "oauth-callback", "success": success}
        if success:
            message["userId"] = user_id
            title, text = "Authentication Successful", "Authentication successful! You can close this window."
        else:
            message["error"] = error
            title, text = "Authentication Failed", "Authentication failed. Please try again."
        html = render_template_string(OAUTH_CALLBACK_PAGE, title=title, text=text, message=message)
        return html, status_code, {"Content-Type": "text/html; charset=utf-8"}

    def _setup_routes(self):
        """Setup Flask routes"""

        @self.app.route('/', methods=['GET'])
        def health_check():
            return jsonify({
                "status": "ok",
                "message": "Tab AI Server is running",
                "endpoints": {
                    "ask": "/ask-gemini",
                    "schedule": "/schedule-event",
                    "auth": "/auth/url",
                    "status": "/auth/status/<userId>",
                },
                "uptime": time.time() - self.start_time,
                "timestamp": datetime.now().isoformat(),
            })

        @self.app.route('/auth/url', methods=['POST'])
        def auth_url():
            data = self._json_body()
            user_id = data.get('userId')
            if RequestValidator.require_fields(data, ['userId']):
                return jsonify({"error": "Missing required field: userId"}), 400

            try:
                url = self.auth_flow.build_consent_url(user_id)
            except ConfigError as e:
                logger.error(f"❌ Auth URL error: {e}")
                return jsonify({"error": e.message, "details": "Failed to generate auth URL"}), 500

            return jsonify({
                "authUrl": url,
                "userId": user_id,
                "message": "Open this URL in browser to authenticate",
            })

        @self.app.route('/oauth2callback', methods=['GET'])
        def oauth2callback():
            code = request.args.get('code')
            user_id = request.args.get('state')
            if not code or not user_id:
                return self._callback_page(400, False, error="Missing code or user ID")

            try:
                credential = self.auth_flow.exchange_code(code, user_id)
            except (AuthExchangeError, ConfigError) as e:
                logger.error(f"❌ OAuth callback error: {e}")
                return self._callback_page(500, False, error=e.message)

            self.credential_store.put(user_id, credential)
            return self._callback_page(200, True, user_id=user_id)

        @self.app.route('/schedule-event', methods=['POST'])
        def schedule_event():
            data = self._json_body()
            user_query = data.get('userQuery')
            user_id = data.get('userId')

            logger.info(f"📅 Received schedule request for user {user_id}: {user_query}")
            outcome = self.scheduler.schedule(user_query, user_id)
            logger.info(f"Schedule request finished: {outcome.state.value}")
            return jsonify(outcome.body), outcome.status_code

        @self.app.route('/auth/status/<user_id>', methods=['GET'])
        def auth_status(user_id):
            return jsonify({
                "authenticated": self.credential_store.has(user_id),
                "userId": user_id,
            })

        @self.app.route('/auth/revoke', methods=['POST'])
        def auth_revoke():
            data = self._json_body()
            if RequestValidator.require_fields(data, ['userId']):
                return jsonify({"error": "Missing required field: userId"}), 400

            user_id = data['userId']
            self.credential_store.delete(user_id)
            return jsonify({"revoked": True, "userId": user_id})

        @self.app.route('/ask-gemini', methods=['POST'])
        def ask_gemini():
            data = self._json_body()
            question = data.get('question')
            tabs_context = data.get('tabsContext')
            if not isinstance(tabs_context, str):
                tabs_context = None

            logger.info(f"📥 Received question, context length: {len(tabs_context or '')}")
            try:
                if RequestValidator.require_fields(data, ['question']):
                    raise ValidationError("Missing required field: question")
                try:
                    max_tokens = int(data.get('maxTokens', self.config.ASK_MAX_TOKENS))
                    temperature = float(data.get('temperature', self.config.ASK_TEMPERATURE))
                except (TypeError, ValueError):
                    raise ValidationError("maxTokens and temperature must be numbers")

                result = self.llm_client.ask(question, tabs_context, max_tokens, temperature)
            except ValidationError as e:
                return jsonify(e.to_dict()), e.status_code
            except SchedulerError as e:
                logger.error(f"❌ Question answering error: {e}")
                return jsonify({
                    "error": e.message,
                    "details": "Failed to process request. Check server logs for details.",
                }), 500

            return jsonify({
                "answer": result.text,
                "timestamp": datetime.now().isoformat(),
                "tokensUsed": result.tokens_used,
            })

        @self.app.errorhandler(404)
        def not_found(error):
            return jsonify({"error": "Endpoint not found"}), 404

        @self.app.errorhandler(500)
        def internal_error(error):
            logger.error(f"❌ Unhandled error: {error}")
            return jsonify({"error": "Internal server error"}), 500

    def _setup_signal_handlers(self):
        """Setup graceful shutdown handlers"""
        def signal_handler(signum, frame):
            logger.info(f"Received signal {signum}, shutting down gracefully...")
            sys.exit(0)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    def run(self, host=None, port=None, debug=False):
        """Run the Flask server"""
        host = host or self.config.API_HOST
        port = port or self.config.API_PORT

        self._setup_signal_handlers()
        self.start_time = time.time()

        logger.info("🚀 Tab AI Server with Calendar started")
        logger.info(f"📡 Listening on {host}:{port}")
        for key, value in self.config.describe().items():
            logger.info(f"   {key}: {value}")

        self.app.run(
            host=host,
            port=port,
            debug=debug,
            threaded=True,
            use_reloader=False,
        )


def create_app(config: Config = None) -> Flask:
    """Factory function to create Flask app"""
    api = SmartCalendarAPI(config)
    return api.app
