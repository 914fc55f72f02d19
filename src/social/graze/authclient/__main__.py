from social.graze.authclient.cli import invoke

if __name__ == "__main__":
    invoke()
