"""fixedwidth test suite.

- unit/test_reader*.py: lookahead buffer, peek/read protocol, separators
- unit/test_writer.py, unit/test_layouts.py: field formatting and layouts
- unit/test_frames.py: DataFrame helpers and parent-child files
- unit/test_config_loader.py, unit/test_cli.py: YAML layouts and the CLI
"""
