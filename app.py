from flask import Flask, request, jsonify
from flask_cors import CORS
from state import initialize_mission, get_mission_summary, load_config, MissionState
from mission import apply_move, apply_mine, mine_remaining, play_turn, IllegalMoveError, MissionFinishedError
from strategy import MalformedRuleError, strategy_from_list, strategy_to_list
from store import StrategyStore
from benchmark.runner import BenchmarkConfig, BenchmarkRunner
from benchmark.baselines import summarize_mission
from typing import Dict, Any, Optional
import random

config = load_config()

app = Flask(__name__)
CORS(app)  # Enable CORS for all routes
app.config['STRATEGY_STORE_PATH'] = config['strategy_store_path']
missions: Dict[str, MissionState] = {}  # In-memory storage for mission states


def _store() -> StrategyStore:
    return StrategyStore(app.config['STRATEGY_STORE_PATH'])


def _request_json(optional: bool = False) -> Optional[Dict[str, Any]]:
    """Request body as a dict; None when it is missing or not a JSON object."""
    data = request.get_json(silent=True)
    if data is None and optional:
        return {}
    if not isinstance(data, dict):
        return None
    return data


def _parse_seed(data: Dict[str, Any]) -> Optional[int]:
    seed = data.get('seed')
    if seed is None:
        return None
    return int(seed)


def _strategy_from_request(data: Dict[str, Any]):
    """Resolve the strategy named by `preset` or given inline as `rules`."""
    if 'rules' in data:
        return strategy_from_list(data['rules'])
    preset = data.get('preset')
    if preset is None:
        raise MalformedRuleError("Request must provide 'preset' or 'rules'")
    strategies = _store().load_all()
    if preset not in strategies:
        raise KeyError(preset)
    return strategies[preset]


def _mission_response(mission_id: str, state: MissionState, **extra) -> Dict[str, Any]:
    response = get_mission_summary(state)
    response['mission_id'] = mission_id
    response.update(extra)
    return response


@app.route('/api/mission/new', methods=['POST'])
def new_mission():
    """Create a new mission, optionally seeded."""
    try:
        data = _request_json(optional=True)
        if data is None:
            return jsonify({'error': 'Invalid JSON data'}), 400

        # Validate seed is an integer
        try:
            seed = _parse_seed(data)
        except (ValueError, TypeError):
            return jsonify({'error': 'Seed must be an integer'}), 400

        state = initialize_mission(seed=seed, config=config)
        missions[state.mission_id] = state

        return jsonify({'mission_id': state.mission_id})

    except Exception as e:
        return jsonify({'error': f'Failed to create mission: {str(e)}'}), 500


@app.route('/api/mission/<mission_id>/state', methods=['GET'])
def get_mission_state(mission_id: str):
    """Retrieve the current mission state; unrevealed tile values stay hidden."""
    if mission_id not in missions:
        return jsonify({'error': 'Mission not found'}), 404
    return jsonify(_mission_response(mission_id, missions[mission_id]))


@app.route('/api/mission/<mission_id>/move', methods=['POST'])
def move(mission_id: str):
    """Move to an adjacent tile."""
    if mission_id not in missions:
        return jsonify({'error': 'Mission not found'}), 404

    data = _request_json()
    if data is None:
        return jsonify({'error': 'Invalid JSON data'}), 400
    if 'q' not in data or 'r' not in data:
        return jsonify({'error': 'Move target must have q and r coordinates'}), 400

    try:
        target = (int(data['q']), int(data['r']))
    except (ValueError, TypeError):
        return jsonify({'error': 'Coordinates must be integers'}), 400

    state = missions[mission_id]
    try:
        revealed = apply_move(state, target)
    except IllegalMoveError as e:
        return jsonify({'error': str(e)}), 400
    except MissionFinishedError as e:
        return jsonify({'error': str(e)}), 409

    return jsonify(_mission_response(mission_id, state, revealed=revealed))


@app.route('/api/mission/<mission_id>/mine', methods=['POST'])
def mine(mission_id: str):
    """Mine the current tile for one turn."""
    if mission_id not in missions:
        return jsonify({'error': 'Mission not found'}), 404

    state = missions[mission_id]
    try:
        extracted = apply_mine(state)
    except MissionFinishedError as e:
        return jsonify({'error': str(e)}), 409

    return jsonify(_mission_response(mission_id, state, extracted=extracted))


@app.route('/api/mission/<mission_id>/mine_all', methods=['POST'])
def mine_all(mission_id: str):
    """Mine the current tile for every remaining turn."""
    if mission_id not in missions:
        return jsonify({'error': 'Mission not found'}), 404

    state = missions[mission_id]
    try:
        extracted = mine_remaining(state)
    except MissionFinishedError as e:
        return jsonify({'error': str(e)}), 409

    return jsonify(_mission_response(mission_id, state, extracted=extracted))


@app.route('/api/mission/<mission_id>/step', methods=['POST'])
def autopilot_step(mission_id: str):
    """Play one turn under a stored preset or inline rules, returning the rule trace."""
    if mission_id not in missions:
        return jsonify({'error': 'Mission not found'}), 404

    data = _request_json()
    if data is None:
        return jsonify({'error': 'Invalid JSON data'}), 400

    state = missions[mission_id]
    try:
        strategy = _strategy_from_request(data)
        decision = play_turn(state, strategy)
    except MalformedRuleError as e:
        return jsonify({'error': str(e)}), 400
    except KeyError as e:
        return jsonify({'error': f'Unknown preset: {e.args[0]}'}), 404
    except MissionFinishedError as e:
        return jsonify({'error': str(e)}), 409

    return jsonify(_mission_response(mission_id, state, decision=decision.to_dict()))


@app.route('/api/mission/<mission_id>/summary', methods=['GET'])
def mission_summary(mission_id: str):
    """Compare the mission with the epsilon-greedy baseline."""
    if mission_id not in missions:
        return jsonify({'error': 'Mission not found'}), 404

    try:
        seed = request.args.get('seed', type=int)
        state = missions[mission_id]
        summary = summarize_mission(
            state,
            random.Random(seed),
            runs=config['baseline_runs'],
            epsilon=config['baseline_epsilon'],
        )
        return jsonify({'mission_id': mission_id, **summary.to_dict()})

    except Exception as e:
        return jsonify({'error': f'Failed to summarize mission: {str(e)}'}), 500


@app.route('/api/mission/<mission_id>/log', methods=['GET'])
def get_mission_log(mission_id: str):
    """Retrieve the full mission log for analysis."""
    if mission_id not in missions:
        return jsonify({'error': 'Mission not found'}), 404

    state = missions[mission_id]
    return jsonify({
        'mission_id': mission_id,
        'status': state.status.value,
        'turns_left': state.turns_left,
        'log': state.log,
    })


@app.route('/api/strategies', methods=['GET'])
def list_strategies():
    """List stored strategies in stored order."""
    try:
        store = _store()
        strategies = store.load_all()
    except MalformedRuleError as e:
        return jsonify({'error': f'Stored strategies are invalid: {str(e)}'}), 500

    return jsonify({
        'strategies': [
            {
                'key': key,
                'name': store.display_name(key),
                'description': store.description(key),
                'rules': strategy_to_list(rules),
            }
            for key, rules in strategies.items()
        ]
    })


@app.route('/api/strategies/<key>', methods=['PUT'])
def save_strategy(key: str):
    """Replace one named strategy."""
    data = _request_json()
    if data is None or 'rules' not in data:
        return jsonify({'error': "Request must provide 'rules'"}), 400

    try:
        strategy = strategy_from_list(data['rules'])
        _store().save(key, strategy)
    except MalformedRuleError as e:
        return jsonify({'error': str(e)}), 400

    return jsonify({'key': key, 'rules': strategy_to_list(strategy)})


@app.route('/api/strategies/reset', methods=['POST'])
def reset_strategies():
    """Restore the default presets."""
    fresh = _store().reset()
    return jsonify({'strategies': {key: strategy_to_list(rules) for key, rules in fresh.items()}})


@app.route('/api/simulate', methods=['POST'])
def simulate():
    """Monte Carlo stress test of one strategy."""
    data = _request_json()
    if data is None:
        return jsonify({'error': 'Invalid JSON data'}), 400

    try:
        strategy = _strategy_from_request(data)
        bench_config = BenchmarkConfig.from_game_config(
            config, runs=data.get('runs'), seed=_parse_seed(data)
        )
        report = BenchmarkRunner(bench_config).run_strategy(strategy)
    except MalformedRuleError as e:
        return jsonify({'error': str(e)}), 400
    except KeyError as e:
        return jsonify({'error': f'Unknown preset: {e.args[0]}'}), 404
    except (ValueError, TypeError) as e:
        return jsonify({'error': f'Invalid simulation parameters: {str(e)}'}), 400

    return jsonify(report.to_dict())


@app.route('/api/benchmark', methods=['POST'])
def benchmark():
    """Compare every stored strategy."""
    data = _request_json(optional=True)
    if data is None:
        return jsonify({'error': 'Invalid JSON data'}), 400

    try:
        bench_config = BenchmarkConfig.from_game_config(
            config, runs=data.get('runs'), seed=_parse_seed(data)
        )
        runner = BenchmarkRunner(bench_config)
        results = runner.run_comparison(_store().load_all())
    except MalformedRuleError as e:
        return jsonify({'error': str(e)}), 400
    except (ValueError, TypeError) as e:
        return jsonify({'error': f'Invalid benchmark parameters: {str(e)}'}), 400

    return jsonify({
        'runs': bench_config.runs,
        'results': [r.to_dict() for r in results],
        'report': runner.generate_report(results),
    })


if __name__ == '__main__':
    app.run(debug=True)
