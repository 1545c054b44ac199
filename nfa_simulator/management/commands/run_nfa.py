import sys

from django.core.management.base import BaseCommand

from nfa_simulator.conf import get_setting
from nfa_simulator.nfa_loader import DefinitionError, load_definition
from nfa_simulator.nfa_simulation import simulate

SEPARATOR = '=' * 40


class Command(BaseCommand):
    help = 'Load an NFA definition and test input strings against it interactively.'

    # Lets call_command() feed input from a buffer
    stealth_options = ('stdin',)

    def add_arguments(self, parser):
        parser.add_argument('path', nargs='?', help='Path to the JSON NFA definition')
        parser.add_argument(
            '--epsilon-key', dest='epsilon_key', default=None,
            help='JSON key marking epsilon moves (defaults to the EPSILON_KEY setting)')
        parser.add_argument(
            '--exit-word', dest='exit_word', default=None,
            help='Input line that ends the session (defaults to the EXIT_WORD setting)')

    def readline(self, prompt):
        """
        Write the prompt and read one stripped line.

        Raises EOFError once the input is exhausted. Read and decode errors
        from stdin propagate to the caller.
        """
        self.stdout.write(prompt, ending='')
        self.stdout.flush()

        line = self.stdin.readline()
        if not line:
            raise EOFError
        return line.strip()

    def ask_path(self):
        while True:
            try:
                return self.readline('File config path: ')
            except (EOFError, UnicodeDecodeError):
                return ''
            except OSError as e:
                self.stdout.write(f'Error: {e}')

    def handle(self, *args, **options):
        self.stdin = options.get('stdin', sys.stdin)
        exit_word = options['exit_word'] or get_setting('EXIT_WORD')

        path = options['path'] or get_setting('DEFINITION_PATH') or self.ask_path()

        try:
            nfa = load_definition(path, options['epsilon_key'])
        except DefinitionError as e:
            self.stderr.write(f'Error loading configs: {e}')
            return

        self.stdout.write('')
        self.stdout.write(SEPARATOR)
        self.stdout.write('**AUTOMATON LOADED**')
        description = nfa.description if nfa.description is not None else 'No description provided'
        self.stdout.write(f'Description : {description}')
        self.stdout.write(SEPARATOR)
        self.stdout.write('')

        self.stdout.write(f"--- Automaton ready (type '{exit_word}' to quit) ---")
        while True:
            try:
                line = self.readline('> ')
            except EOFError:
                self.stdout.write('')
                break
            except (OSError, UnicodeDecodeError) as e:
                self.stderr.write(f'Reading error: {e}')
                break

            if line == exit_word:
                break

            if simulate(nfa, line):
                self.stdout.write('✅ Good')
            else:
                self.stdout.write('❌ Bad')
