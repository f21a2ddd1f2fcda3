from msgsealer.cli import msgsealer_cli

if __name__ == "__main__":
    fake_prog_name = "python -m msgsealer"  # Else __main__.py is used in help text...
    msgsealer_cli(prog_name=fake_prog_name)
