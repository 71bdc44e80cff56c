from hello_operator.cli import app

if __name__ == "__main__":
    app()
