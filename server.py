import logging
import os

from flask import Flask, request, jsonify

import config
import core  # Import the core logic file
from schedule import IngestionError

LOGGER = logging.getLogger(__name__)

app = Flask(__name__)

timer = core.TimerCore()


# --- HELPERS ---

def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValueError('Request body must be a JSON object.')
    return data


def _state_response(status=200):
    return jsonify(timer.get_timer_state_details()), status


def _ingestion_failed(e):
    LOGGER.error("Schedule ingestion failed: %s", e)
    return jsonify({'success': False, 'error': 'Failed to parse schedule. Please check the format or try again.',
                    'detail': str(e)}), 502


# --- API ENDPOINTS ---

@app.route('/api/state', methods=['GET'])
def get_state():
    """Endpoint for the display clients to poll the current timer state."""
    timer.tick()
    return _state_response()


@app.route('/api/schedule', methods=['GET'])
def get_schedule():
    """Returns the loaded schedule in its original order."""
    return jsonify({'schedule': [item.to_dict() for item in timer.store.items]})


@app.route('/api/parse_schedule', methods=['POST'])
def parse_schedule_route():
    """Endpoint to turn pasted schedule text into timed items."""
    try:
        text = _json_body().get('text', '')
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    if not isinstance(text, str) or not text.strip():
        return jsonify({'success': False, 'error': 'No schedule text supplied.'}), 400

    try:
        items = timer.ingest_text(text)
    except IngestionError as e:
        return _ingestion_failed(e)
    return jsonify({'success': True, 'schedule': [i.to_dict() for i in items]})


@app.route('/api/parse_url', methods=['POST'])
def parse_url_route():
    """Endpoint to fetch an agenda page and parse the schedule it contains."""
    try:
        url = _json_body().get('url')
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    if not url:
        return jsonify({'success': False, 'error': 'No URL supplied.'}), 400

    try:
        items = timer.ingest_url(url)
    except IngestionError as e:
        return _ingestion_failed(e)
    return jsonify({'success': True, 'schedule': [i.to_dict() for i in items]})


@app.route('/api/load_file', methods=['POST'])
def load_file_route():
    """Loads a saved JSON schedule from the schedules directory."""
    try:
        name = _json_body().get('name')
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    if not name:
        return jsonify({'success': False, 'error': 'No file name supplied.'}), 400

    path = os.path.join(config.SCHEDULES_DIR, os.path.basename(name))
    try:
        items = timer.ingest_file(path)
    except IngestionError as e:
        return _ingestion_failed(e)
    return jsonify({'success': True, 'schedule': [i.to_dict() for i in items]})


@app.route('/api/load_sample', methods=['POST'])
def load_sample_route():
    items = timer.load_sample()
    return jsonify({'success': True, 'schedule': [i.to_dict() for i in items]})


@app.route('/api/reset_schedule', methods=['POST'])
def reset_schedule_route():
    """Drops the current schedule so a new one can be entered."""
    timer.clear_schedule()
    return jsonify({'success': True, 'message': 'Schedule cleared.'})


@app.route('/api/adjust_time', methods=['POST'])
def adjust_time():
    """Endpoint to nudge simulated time forwards or backwards by whole minutes."""
    try:
        minutes = int(_json_body().get('minutes', 0))
    except (TypeError, ValueError):
        return jsonify({'success': False, 'error': 'Invalid adjustment value.'}), 400
    timer.adjust_time(minutes)
    return _state_response()


@app.route('/api/reset_offset', methods=['POST'])
def reset_offset_route():
    timer.reset_offset()
    return _state_response()


@app.route('/api/jump_to_item', methods=['POST'])
def jump_to_item_route():
    """Endpoint behind clicking an item in the timeline: travel to its start."""
    try:
        item_id = _json_body().get('id')
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    item = timer.get_item(item_id)
    if item is None:
        return jsonify({'success': False, 'error': f'Unknown item: {item_id}'}), 404
    timer.jump_to_item(item)
    return _state_response()


@app.route('/api/jump_to_near_end', methods=['POST'])
def jump_to_near_end_route():
    """Endpoint to land a few seconds before an item ends (defaults to the active one)."""
    data = request.get_json(silent=True) or {}
    item_id = data.get('id') if isinstance(data, dict) else None
    item = None
    if item_id:
        item = timer.get_item(item_id)
        if item is None:
            return jsonify({'success': False, 'error': f'Unknown item: {item_id}'}), 404

    try:
        state = timer.jump_to_near_end(item)
    except KeyError:
        return jsonify({'success': False, 'error': f'Unknown item: {item_id}'}), 404
    if state is None:
        return jsonify({'success': False, 'error': 'No active item to jump from.'}), 409
    return _state_response()


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    timer.start()
    try:
        app.run(debug=False, host=config.SERVER_HOST, port=config.SERVER_PORT)
    finally:
        timer.stop()
