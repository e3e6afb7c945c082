from batani import create_app

app = create_app()
