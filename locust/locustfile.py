import uuid

from locust import HttpUser, task, between

API_PREFIX = "/api/v1"


class PostboardUser(HttpUser):
    # No wait time between tasks to max out the target system
    wait_time = between(0, 0)

    def on_start(self):
        email = f"load-{uuid.uuid4().hex}@example.com"
        with self.client.post(
            f"{API_PREFIX}/users",
            json={"email": email, "name": "Load Tester"},
            catch_response=True,
        ) as response:
            if response.status_code == 200:
                self.user_id = response.json()["id"]
                self.email = email
                response.success()
            else:
                self.user_id = None
                response.failure(f"Status code: {response.status_code}")
        self.post_ids = []

    @task(3)
    def list_posts(self):
        self.client.get(f"{API_PREFIX}/posts")

    @task(2)
    def create_post_and_comment(self):
        if not self.user_id:
            return
        response = self.client.post(
            f"{API_PREFIX}/posts",
            json={"userId": self.user_id, "title": "Load test", "content": "Posted by locust"},
        )
        if response.status_code != 200:
            return
        post_id = response.json()["id"]
        self.post_ids.append(post_id)
        self.client.post(
            f"{API_PREFIX}/comments",
            json={"userId": self.user_id, "postId": post_id, "content": "First!"},
        )

    @task(2)
    def read_post_comments(self):
        if not self.post_ids:
            return
        post_id = self.post_ids[-1]
        self.client.get(f"{API_PREFIX}/posts/{post_id}", name=f"{API_PREFIX}/posts/[id]")
        self.client.get(
            f"{API_PREFIX}/posts/{post_id}/comments", name=f"{API_PREFIX}/posts/[id]/comments"
        )

    @task(1)
    def duplicate_email(self):
        if not self.user_id:
            return
        with self.client.post(
            f"{API_PREFIX}/users",
            json={"email": self.email, "name": "Duplicate"},
            catch_response=True,
            name=f"{API_PREFIX}/users [duplicate]",
        ) as response:
            if response.status_code == 409:
                response.success()
            else:
                response.failure(f"Status code: {response.status_code}")
