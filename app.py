from fire_muster.main import create_app

app = create_app()

if __name__ == "__main__":
    # Server-Sent-Event streams hold a worker each.
    app.run(debug=app.config["DEBUG"], threaded=True)
