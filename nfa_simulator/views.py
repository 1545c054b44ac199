import json
import logging
from functools import lru_cache

from django.http import JsonResponse, StreamingHttpResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from .conf import get_setting
from .nfa_loader import definition_to_dict, load_definition, parse_definition, validate_nfa_structure
from .nfa_simulation import epsilon_closure, simulate, simulate_trace

logger = logging.getLogger(__name__)


@lru_cache(maxsize=None)
def _default_definition(path, epsilon_key):
    # Loaded once per (path, epsilon key), the definition is immutable
    return load_definition(path, epsilon_key)


def _read_request(request):
    """
    Decode the JSON body and pull out the input string.

    Raises ValueError for a malformed body or a non-string input.
    """
    data = json.loads(request.body)
    if not isinstance(data, dict):
        raise ValueError('Request body must be a JSON object')

    input_string = data.get('input', '')
    if not isinstance(input_string, str):
        raise ValueError('input must be a string')

    return data, input_string


def _result_payload(nfa, input_string):
    # The summary is always the last event of a trace
    *_, summary = simulate_trace(nfa, input_string)

    return {
        'accepted': summary['accepted'],
        'final_states': summary['final_states'],
        'matched_accept_states': summary['matched_accept_states']
    }


def _error_stream(message, status):
    def error_generator():
        yield f"data: {json.dumps({'error': message})}\n\n"

    return StreamingHttpResponse(
        error_generator(),
        content_type='text/event-stream',
        status=status
    )


@csrf_exempt
@require_POST
def simulate_nfa(request):
    """
    Django view to handle NFA simulation requests.

    Expects a POST request with a JSON body containing:
    - nfa: The NFA definition in its JSON document form
    - input: The input string to simulate

    Returns a JSON response with the acceptance decision.
    """
    try:
        data, input_string = _read_request(request)
        nfa_data = data.get('nfa')

        if not nfa_data:
            logger.warning("simulate_nfa called without a definition")
            return JsonResponse({'error': 'Missing NFA definition'}, status=400)

        validation = validate_nfa_structure(nfa_data)
        if not validation['valid']:
            logger.warning("simulate_nfa rejected definition: %s", validation['error'])
            return JsonResponse({'error': validation['error']}, status=400)

        nfa = parse_definition(nfa_data)

        return JsonResponse(_result_payload(nfa, input_string))

    except ValueError as e:
        logger.warning("simulate_nfa bad request: %s", e)
        return JsonResponse({'error': str(e)}, status=400)
    except Exception as e:
        logger.exception("simulate_nfa failed")
        return JsonResponse({'error': f'Server error: {str(e)}'}, status=500)


@csrf_exempt
@require_POST
def simulate_nfa_stream(request):
    """
    Django view streaming the state set after each input symbol.
    Returns results as they are generated using Server-Sent Events format.
    """
    try:
        data, input_string = _read_request(request)
        nfa_data = data.get('nfa')

        if not nfa_data:
            logger.warning("simulate_nfa_stream called without a definition")
            return _error_stream('Missing NFA definition', 400)

        validation = validate_nfa_structure(nfa_data)
        if not validation['valid']:
            logger.warning("simulate_nfa_stream rejected definition: %s", validation['error'])
            return _error_stream(validation['error'], 400)

        nfa = parse_definition(nfa_data)

        def result_generator():
            """Generator to stream simulation events as Server-Sent Events"""
            try:
                for event in simulate_trace(nfa, input_string):
                    yield f"data: {json.dumps(event)}\n\n"

                # Send end-of-stream marker
                yield f"data: {json.dumps({'type': 'end'})}\n\n"

            except Exception as e:
                logger.exception("simulate_nfa_stream failed mid-stream")
                yield f"data: {json.dumps({'type': 'error', 'message': str(e)})}\n\n"

        response = StreamingHttpResponse(result_generator(), content_type='text/event-stream')
        response['Cache-Control'] = 'no-cache'
        response['X-Accel-Buffering'] = 'no'  # Disable nginx buffering

        return response

    except ValueError as e:
        logger.warning("simulate_nfa_stream bad request: %s", e)
        return _error_stream(str(e), 400)
    except Exception as e:
        logger.exception("simulate_nfa_stream failed")
        return _error_stream(f'Server error: {str(e)}', 500)


@csrf_exempt
@require_POST
def check_nfa(request):
    """
    Django view to check that an NFA definition can be loaded.

    Returns the states it names and the states reachable before any input
    is read.
    """
    try:
        data = json.loads(request.body)
        nfa_data = data.get('nfa') if isinstance(data, dict) else None

        if not nfa_data:
            return JsonResponse({'error': 'Missing NFA definition'}, status=400)

        validation = validate_nfa_structure(nfa_data)
        if not validation['valid']:
            logger.warning("check_nfa rejected definition: %s", validation['error'])
            return JsonResponse({'error': validation['error']}, status=400)

        nfa = parse_definition(nfa_data)

        return JsonResponse({
            'valid': True,
            'states': sorted(nfa.states()),
            'initial_states': sorted(epsilon_closure(nfa, {nfa.start_state})),
            'accepts_empty_input': simulate(nfa, ''),
            'description': nfa.description,
            'definition': definition_to_dict(nfa)
        })

    except ValueError as e:
        return JsonResponse({'error': str(e)}, status=400)
    except Exception as e:
        logger.exception("check_nfa failed")
        return JsonResponse({'error': f'Server error: {str(e)}'}, status=500)


@csrf_exempt
@require_POST
def simulate_default(request):
    """
    Django view simulating against the definition configured in
    NFA_SIMULATOR['DEFINITION_PATH'].
    """
    try:
        _, input_string = _read_request(request)

        path = get_setting('DEFINITION_PATH')
        if not path:
            return JsonResponse({'error': 'No default NFA definition configured'}, status=404)

        nfa = _default_definition(str(path), get_setting('EPSILON_KEY'))
        payload = _result_payload(nfa, input_string)
        payload['description'] = nfa.description

        return JsonResponse(payload)

    except ValueError as e:
        logger.warning("simulate_default bad request: %s", e)
        return JsonResponse({'error': str(e)}, status=400)
    except Exception as e:
        logger.exception("simulate_default failed")
        return JsonResponse({'error': f'Server error: {str(e)}'}, status=500)
