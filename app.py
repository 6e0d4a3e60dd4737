from labstock import create_app

app = create_app()

if __name__ == "__main__":
    # Listen on all interfaces so the dashboard is reachable from bench tablets
    app.run(host="0.0.0.0", port=3000, debug=True)
