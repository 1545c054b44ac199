import json
from pathlib import Path
from unittest.mock import patch

from django.test import TestCase, Client, override_settings

SAMPLES_DIR = Path(__file__).resolve().parent.parent / 'samples'


class NFAViewTestCase(TestCase):
    """Base test case with common NFA definitions and utilities"""

    def setUp(self):
        self.client = Client()

        # S --a--> A, S --eps--> B, B --b--> A
        self.sample_nfa = {
            'start_state': 'S',
            'accept_states': ['A'],
            'transitions': {
                'S': {'a': ['A'], '': ['B']},
                'B': {'b': ['A']}
            },
            'description': 'epsilon branch'
        }

        # Invalid NFA (missing required keys)
        self.invalid_nfa = {
            'start_state': 'S'
        }

    def post_json(self, url, data):
        """Helper method to send JSON POST requests"""
        return self.client.post(
            url,
            data=json.dumps(data),
            content_type='application/json'
        )

    def read_events(self, response):
        """Helper collecting the JSON payloads of a Server-Sent Events response"""
        content = b''.join(response.streaming_content).decode('utf-8')
        return [
            json.loads(frame[len('data: '):])
            for frame in content.split('\n\n')
            if frame.startswith('data: ')
        ]


class SimulateNFAViewTests(NFAViewTestCase):
    """Tests for the NFA simulation endpoint"""

    def test_accepted(self):
        """Test simulation with accepted input"""
        response = self.post_json('/api/simulate-nfa/', {
            'nfa': self.sample_nfa,
            'input': 'b'
        })

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {
            'accepted': True,
            'final_states': ['A'],
            'matched_accept_states': ['A']
        })

    def test_rejected(self):
        """Test simulation with rejected input"""
        response = self.post_json('/api/simulate-nfa/', {
            'nfa': self.sample_nfa,
            'input': 'ab'
        })

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertFalse(data['accepted'])
        self.assertEqual(data['final_states'], [])

    def test_empty_input_is_default(self):
        """Test that a missing input simulates the empty string"""
        response = self.post_json('/api/simulate-nfa/', {'nfa': self.sample_nfa})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertFalse(data['accepted'])
        self.assertEqual(data['final_states'], ['B', 'S'])

    def test_missing_nfa(self):
        """Test request without NFA definition"""
        response = self.post_json('/api/simulate-nfa/', {'input': 'a'})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'Missing NFA definition')

    def test_invalid_nfa(self):
        """Test request with an NFA missing required keys"""
        response = self.post_json('/api/simulate-nfa/', {
            'nfa': self.invalid_nfa,
            'input': 'a'
        })

        self.assertEqual(response.status_code, 400)
        self.assertIn('Missing required key', response.json()['error'])

    def test_non_string_input(self):
        """Test request where input is not a string"""
        response = self.post_json('/api/simulate-nfa/', {
            'nfa': self.sample_nfa,
            'input': ['a']
        })

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'input must be a string')

    def test_malformed_json(self):
        """Test request with a body that is not JSON"""
        response = self.client.post(
            '/api/simulate-nfa/',
            data='{"nfa": ',
            content_type='application/json'
        )

        self.assertEqual(response.status_code, 400)
        self.assertIn('error', response.json())

    def test_get_not_allowed(self):
        """Test that only POST is accepted"""
        response = self.client.get('/api/simulate-nfa/')
        self.assertEqual(response.status_code, 405)

    @override_settings(NFA_SIMULATOR={'EPSILON_KEY': '*'})
    def test_configured_epsilon_key(self):
        """Test that the EPSILON_KEY setting applies to request definitions"""
        self.sample_nfa['transitions']['S'] = {'a': ['A'], '*': ['B']}

        response = self.post_json('/api/simulate-nfa/', {
            'nfa': self.sample_nfa,
            'input': 'b'
        })

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()['accepted'])

    @patch('nfa_simulator.views.simulate_trace')
    def test_server_error(self, mock_trace):
        """Test that unexpected failures become 500 responses"""
        mock_trace.side_effect = RuntimeError('boom')

        with self.assertLogs('nfa_simulator.views', level='ERROR'):
            response = self.post_json('/api/simulate-nfa/', {
                'nfa': self.sample_nfa,
                'input': 'a'
            })

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()['error'], 'Server error: boom')


class SimulateNFAStreamViewTests(NFAViewTestCase):
    """Tests for the streaming NFA simulation endpoint"""

    def test_response_format(self):
        """Test that streaming endpoint returns proper Server-Sent Events format"""
        response = self.post_json('/api/simulate-nfa-stream/', {
            'nfa': self.sample_nfa,
            'input': 'b'
        })

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response['Content-Type'], 'text/event-stream')
        self.assertEqual(response['Cache-Control'], 'no-cache')

    def test_content(self):
        """Test the events of an accepted input"""
        response = self.post_json('/api/simulate-nfa-stream/', {
            'nfa': self.sample_nfa,
            'input': 'b'
        })

        events = self.read_events(response)
        self.assertEqual([event['type'] for event in events], ['initial', 'step', 'summary', 'end'])
        self.assertEqual(events[0]['states'], ['B', 'S'])
        self.assertTrue(events[2]['accepted'])

    def test_halted_content(self):
        """Test the events of an input that empties the state set"""
        response = self.post_json('/api/simulate-nfa-stream/', {
            'nfa': self.sample_nfa,
            'input': 'aba'
        })

        events = self.read_events(response)
        self.assertEqual([event['type'] for event in events], ['initial', 'step', 'step', 'halted', 'summary', 'end'])
        self.assertEqual(events[3]['remaining_input'], 'a')
        self.assertFalse(events[4]['accepted'])

    def test_missing_nfa_error(self):
        """Test streaming endpoint error handling"""
        response = self.post_json('/api/simulate-nfa-stream/', {'input': 'a'})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response['Content-Type'], 'text/event-stream')
        self.assertEqual(self.read_events(response), [{'error': 'Missing NFA definition'}])

    def test_invalid_nfa_error(self):
        response = self.post_json('/api/simulate-nfa-stream/', {
            'nfa': self.invalid_nfa,
            'input': 'a'
        })

        self.assertEqual(response.status_code, 400)
        self.assertIn('Missing required key', self.read_events(response)[0]['error'])

    @patch('nfa_simulator.views.simulate_trace')
    def test_error_mid_stream(self, mock_trace):
        """Test that a failure while streaming becomes an error event"""
        mock_trace.side_effect = RuntimeError('boom')

        response = self.post_json('/api/simulate-nfa-stream/', {
            'nfa': self.sample_nfa,
            'input': 'a'
        })

        with self.assertLogs('nfa_simulator.views', level='ERROR'):
            events = self.read_events(response)

        self.assertEqual(events, [{'type': 'error', 'message': 'boom'}])


class CheckNFAViewTests(NFAViewTestCase):
    """Tests for the definition check endpoint"""

    def test_valid_nfa(self):
        response = self.post_json('/api/check-nfa/', {'nfa': self.sample_nfa})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {
            'valid': True,
            'states': ['A', 'B', 'S'],
            'initial_states': ['B', 'S'],
            'accepts_empty_input': False,
            'description': 'epsilon branch',
            'definition': self.sample_nfa
        })

    @override_settings(NFA_SIMULATOR={'EPSILON_KEY': '*'})
    def test_definition_echo_uses_epsilon_key(self):
        self.sample_nfa['transitions']['S'] = {'a': ['A'], '*': ['B']}

        response = self.post_json('/api/check-nfa/', {'nfa': self.sample_nfa})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['definition'], self.sample_nfa)
        self.assertEqual(response.json()['initial_states'], ['B', 'S'])

    def test_accepts_empty_input(self):
        self.sample_nfa['accept_states'] = ['B']

        response = self.post_json('/api/check-nfa/', {'nfa': self.sample_nfa})

        self.assertTrue(response.json()['accepts_empty_input'])

    def test_invalid_nfa(self):
        response = self.post_json('/api/check-nfa/', {'nfa': self.invalid_nfa})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'Missing required key: accept_states')

    def test_missing_nfa(self):
        response = self.post_json('/api/check-nfa/', {})
        self.assertEqual(response.status_code, 400)


class SimulateDefaultViewTests(NFAViewTestCase):
    """Tests for simulation against the configured definition"""

    @override_settings(NFA_SIMULATOR={'DEFINITION_PATH': str(SAMPLES_DIR / 'ends_with_ab.json')})
    def test_configured_definition(self):
        response = self.post_json('/api/simulate-default/', {'input': 'aab'})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data['accepted'])
        self.assertEqual(data['matched_accept_states'], ['q2'])
        self.assertEqual(data['description'], "Strings over {a, b} ending in 'ab'")

        response = self.post_json('/api/simulate-default/', {'input': 'aba'})
        self.assertFalse(response.json()['accepted'])

    @override_settings(NFA_SIMULATOR={'DEFINITION_PATH': None})
    def test_not_configured(self):
        response = self.post_json('/api/simulate-default/', {'input': 'a'})

        self.assertEqual(response.status_code, 404)

    @override_settings(NFA_SIMULATOR={'DEFINITION_PATH': str(SAMPLES_DIR / 'missing.json')})
    def test_unreadable_definition(self):
        response = self.post_json('/api/simulate-default/', {'input': 'a'})

        self.assertEqual(response.status_code, 400)
        self.assertIn('missing.json', response.json()['error'])

    def test_epsilon_key_is_part_of_cached_definition(self):
        path = str(SAMPLES_DIR / 'star_epsilon.json')

        # Same file, read once with '*' as an ordinary symbol and once as epsilon
        with self.settings(NFA_SIMULATOR={'DEFINITION_PATH': path, 'EPSILON_KEY': ''}):
            self.assertFalse(self.post_json('/api/simulate-default/', {'input': 'b'}).json()['accepted'])
            self.assertTrue(self.post_json('/api/simulate-default/', {'input': '*b'}).json()['accepted'])

        with self.settings(NFA_SIMULATOR={'DEFINITION_PATH': path, 'EPSILON_KEY': '*'}):
            self.assertTrue(self.post_json('/api/simulate-default/', {'input': 'b'}).json()['accepted'])
            self.assertFalse(self.post_json('/api/simulate-default/', {'input': '*b'}).json()['accepted'])
